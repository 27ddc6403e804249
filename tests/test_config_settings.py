"""
Tests for qanalytics/config/settings.py

Environment variables are set with monkeypatch; the autouse fixture in
conftest resets the cached singleton around every test.
"""

import pytest

from qanalytics.config.settings import (
    AnalyticsSettings,
    get_settings,
    reset_settings,
)

_ENV_VARS = (
    "QANALYTICS_LOG_LEVEL",
    "QANALYTICS_LOG_FORMAT",
    "QANALYTICS_PARALLEL_THRESHOLD",
    "QANALYTICS_MAX_WORKERS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_without_environment(clean_env):
    settings = AnalyticsSettings.from_env()

    assert settings == AnalyticsSettings()
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.parallel_threshold == 100_000
    assert settings.max_workers == 4


def test_values_are_read_and_normalized(clean_env):
    clean_env.setenv("QANALYTICS_LOG_LEVEL", " debug ")
    clean_env.setenv("QANALYTICS_LOG_FORMAT", "TEXT")
    clean_env.setenv("QANALYTICS_PARALLEL_THRESHOLD", "2500")
    clean_env.setenv("QANALYTICS_MAX_WORKERS", "8")

    settings = AnalyticsSettings.from_env()

    assert settings.log_level == "DEBUG"
    assert settings.log_format == "text"
    assert settings.parallel_threshold == 2500
    assert settings.max_workers == 8


@pytest.mark.parametrize(
    "name, value",
    [
        ("QANALYTICS_LOG_LEVEL", "LOUD"),
        ("QANALYTICS_LOG_FORMAT", "xml"),
        ("QANALYTICS_PARALLEL_THRESHOLD", "0"),
        ("QANALYTICS_PARALLEL_THRESHOLD", "many"),
        ("QANALYTICS_MAX_WORKERS", "-2"),
        ("QANALYTICS_MAX_WORKERS", "1.5"),
    ],
)
def test_invalid_values_fail_fast(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ValueError, match=name):
        AnalyticsSettings.from_env()


def test_direct_construction_is_validated():
    with pytest.raises(ValueError):
        AnalyticsSettings(max_workers=0)


def test_settings_are_frozen():
    settings = AnalyticsSettings()

    with pytest.raises(AttributeError):
        settings.max_workers = 2


def test_get_settings_is_cached_until_reset(clean_env):
    first = get_settings()
    clean_env.setenv("QANALYTICS_MAX_WORKERS", "2")

    assert get_settings() is first
    assert get_settings().max_workers == 4

    reset_settings()

    assert get_settings().max_workers == 2
