"""
Tests for qanalytics/analytics/frequency.py

Frequency tokens are tiny, so these tests enumerate the accepted spellings and
the malformed shapes that must be rejected rather than silently defaulted.
"""

import dataclasses

import pytest

from qanalytics.analytics.errors import AnalyticsError, UnsupportedFrequencyError
from qanalytics.analytics.frequency import (
    AnalysisFrequency,
    FrequencyUnit,
    parse_frequency,
)
from qanalytics.analytics.metrics import risk_analysis


@pytest.mark.parametrize(
    "token, count, unit",
    [
        ("2week", 2, FrequencyUnit.WEEK),
        ("day", 1, FrequencyUnit.DAY),
        ("d", 1, FrequencyUnit.DAY),
        ("5d", 5, FrequencyUnit.DAY),
        ("w", 1, FrequencyUnit.WEEK),
        ("mon", 1, FrequencyUnit.MONTH),
        ("3month", 3, FrequencyUnit.MONTH),
        ("30min", 30, FrequencyUnit.MINUTE),
        ("1minute", 1, FrequencyUnit.MINUTE),
        ("  2WEEK ", 2, FrequencyUnit.WEEK),
        ("Day", 1, FrequencyUnit.DAY),
        ("007day", 7, FrequencyUnit.DAY),
    ],
)
def test_parse_frequency_accepts_known_tokens(token, count, unit):
    """Each accepted spelling maps to the expected (count, unit)."""
    frequency = parse_frequency(token)

    assert frequency.count == count
    assert frequency.unit is unit


@pytest.mark.parametrize(
    "token",
    [
        "", "   ", "2", "12", "2hours", "week2", "2 week", "year", "-1day", "1.5day",
        "1" + "0" * 400 + "day",
        "9" * 5000 + "day",
        "1" * 19 + "week",
    ],
)
def test_parse_frequency_rejects_malformed_tokens(token):
    """Empty or unknown suffixes raise UnsupportedFrequencyError carrying the token."""
    with pytest.raises(UnsupportedFrequencyError) as excinfo:
        parse_frequency(token)

    assert excinfo.value.token == token
    assert isinstance(excinfo.value, AnalyticsError)


def test_parse_frequency_rejects_non_string():
    """A non-string token is reported, not crashed on."""
    with pytest.raises(UnsupportedFrequencyError):
        parse_frequency(None)


def test_zero_count_is_clamped_to_one():
    """Both parsing '0day' and constructing count=0 clamp to a count of one."""
    assert parse_frequency("0day").count == 1
    assert AnalysisFrequency(0, FrequencyUnit.DAY) == AnalysisFrequency(1, FrequencyUnit.DAY)


@pytest.mark.parametrize(
    "token, expected",
    [
        ("day", 238.0),
        ("2week", 25.0),
        ("week", 50.0),
        ("month", 12.0),
        ("min", 240.0 * 238.0),
        ("3min", 240.0 * 238.0 / 3),
    ],
)
def test_periods_per_year_uses_238_day_year(token, expected):
    """periods_per_year = base scaler / count with the 238-trading-day convention."""
    assert parse_frequency(token).periods_per_year == pytest.approx(expected, abs=1e-12)


def test_frequency_is_immutable():
    """AnalysisFrequency cannot be modified after construction."""
    frequency = AnalysisFrequency(2, FrequencyUnit.WEEK)

    with pytest.raises(dataclasses.FrozenInstanceError):
        frequency.count = 3


def test_frequency_str_round_trips_through_parser():
    """str() renders a token the parser accepts back to an equal frequency."""
    frequency = AnalysisFrequency(2, FrequencyUnit.WEEK)

    assert str(frequency) == "2week"
    assert parse_frequency(str(frequency)) == frequency


def test_long_count_limit_counts_significant_digits_only():
    """Leading zeros do not count towards the count length limit."""
    frequency = parse_frequency("0" * 30 + "999999999999999999min")

    assert frequency.count == 999_999_999_999_999_999
    assert frequency.periods_per_year > 0.0


def test_oversized_count_is_reported_by_risk_analysis():
    """An oversized count surfaces as the frequency error, not a numeric crash."""
    with pytest.raises(UnsupportedFrequencyError):
        risk_analysis([0.01, -0.02], freq="1" + "0" * 400 + "day")
