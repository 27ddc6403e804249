"""
Configuration settings for the analytics package.

**Conceptual**: This module provides a strongly-typed configuration object that
loads from environment variables (via .env files). Settings are validated when
loaded, so a typo in an environment variable fails fast at startup rather than
halfway through a long analysis run.

**What is configurable?** Only the ambient concerns:
  - Logging level and format (consumed by qanalytics.diagnostics.logging_config).
  - Threaded summation knobs (consumed by qanalytics.utils.reduction).

The analytics functions themselves never read settings. Applications translate
settings into the collaborators they inject (a reducer, a sink), which keeps the
numeric core independent of process environment.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root (dev/local environments); existing env vars win
load_dotenv(dotenv_path=Path(__file__).parent.parent.parent / ".env")

_VALID_LOG_FORMATS = ("json", "text")


def _read_positive_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got: {value}")
    return value


@dataclass(frozen=True)
class AnalyticsSettings:
    """
    Settings for logging and parallel reduction.

    Attributes:
        log_level: Name of a stdlib logging level (e.g. "INFO", "DEBUG").
        log_format: "json" (one JSON object per line) or "text".
        parallel_threshold: Minimum series length before ThreadedReducer splits
                            work into chunks; also the chunk size.
        max_workers: Thread pool size for ThreadedReducer.
    """
    log_level: str = "INFO"
    log_format: str = "json"
    parallel_threshold: int = 100_000
    max_workers: int = 4

    def __post_init__(self):
        """Validate settings after initialization."""
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(
                f"QANALYTICS_LOG_LEVEL must be a logging level name "
                f"(DEBUG, INFO, WARNING, ERROR, CRITICAL), got: {self.log_level}"
            )
        if self.log_format not in _VALID_LOG_FORMATS:
            raise ValueError(
                f"QANALYTICS_LOG_FORMAT must be one of {_VALID_LOG_FORMATS}, "
                f"got: {self.log_format}"
            )
        if self.parallel_threshold < 1:
            raise ValueError(
                f"QANALYTICS_PARALLEL_THRESHOLD must be >= 1, got: {self.parallel_threshold}"
            )
        if self.max_workers < 1:
            raise ValueError(f"QANALYTICS_MAX_WORKERS must be >= 1, got: {self.max_workers}")

    @classmethod
    def from_env(cls) -> "AnalyticsSettings":
        """
        Load settings from environment variables.

        **Environment variables** (all optional):
          - QANALYTICS_LOG_LEVEL: default "INFO".
          - QANALYTICS_LOG_FORMAT: "json" or "text", default "json".
          - QANALYTICS_PARALLEL_THRESHOLD: positive int, default 100000.
          - QANALYTICS_MAX_WORKERS: positive int, default 4.

        Returns:
            Validated AnalyticsSettings.

        Raises:
            ValueError: If any variable is set to an invalid value.

        Usage example:
            >>> # In .env file:
            >>> # QANALYTICS_LOG_FORMAT=text
            >>> settings = AnalyticsSettings.from_env()
            >>> settings.log_format
            'text'
        """
        return cls(
            log_level=os.getenv("QANALYTICS_LOG_LEVEL", "INFO").strip().upper(),
            log_format=os.getenv("QANALYTICS_LOG_FORMAT", "json").strip().lower(),
            parallel_threshold=_read_positive_int("QANALYTICS_PARALLEL_THRESHOLD", "100000"),
            max_workers=_read_positive_int("QANALYTICS_MAX_WORKERS", "4"),
        )


# Lazily-loaded singleton. Tests should call reset_settings() after changing env vars.
_default_settings: Optional[AnalyticsSettings] = None


def get_settings() -> AnalyticsSettings:
    """
    Get the global settings singleton.

    Settings are loaded from the environment on first call, then cached for
    reuse. Library code should prefer taking settings (or the collaborators
    built from them) as arguments; this accessor exists for scripts in actions/.

    Returns:
        Global AnalyticsSettings singleton.

    Raises:
        ValueError: If the environment holds invalid values.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = AnalyticsSettings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    **Testing pattern**:
      ```python
      def test_something(monkeypatch):
          monkeypatch.setenv("QANALYTICS_MAX_WORKERS", "2")
          reset_settings()
          assert get_settings().max_workers == 2
      ```
    """
    global _default_settings
    _default_settings = None
