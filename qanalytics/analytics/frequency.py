"""
Analysis frequency parsing and annualization scalers.

**Conceptual**: Annualized statistics need to know how many return periods make
up a year. Instead of asking callers for that number directly, they can pass a
compact frequency token such as "day", "2week" or "30min"; this module turns it
into an `AnalysisFrequency` and derives `periods_per_year` from it.

**Convention**: The year is a 238-trading-day year (not 252, not 365), with
240 trading minutes per day, 50 weeks and 12 months:

    Minute -> 240 * 238 = 57120
    Day    -> 238
    Week   -> 50
    Month  -> 12

periods_per_year = base_scaler(unit) / count, so "2week" -> 25 periods per year.
"""

import re
from dataclasses import dataclass
from enum import Enum

from qanalytics.analytics.errors import UnsupportedFrequencyError


class FrequencyUnit(Enum):
    """Base time unit of an analysis frequency."""

    MINUTE = "minute"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def base_scaler(self) -> float:
        """Periods per year for a count of one."""
        return _BASE_SCALERS[self]


_BASE_SCALERS = {
    FrequencyUnit.MINUTE: 240.0 * 238.0,
    FrequencyUnit.DAY: 238.0,
    FrequencyUnit.WEEK: 50.0,
    FrequencyUnit.MONTH: 12.0,
}

# Accepted suffixes (after lowercasing) and the unit each one names.
_UNIT_SUFFIXES = {
    "month": FrequencyUnit.MONTH,
    "mon": FrequencyUnit.MONTH,
    "week": FrequencyUnit.WEEK,
    "w": FrequencyUnit.WEEK,
    "day": FrequencyUnit.DAY,
    "d": FrequencyUnit.DAY,
    "minute": FrequencyUnit.MINUTE,
    "min": FrequencyUnit.MINUTE,
}

# Leading ASCII digit run (possibly empty) followed by the unit suffix.
_TOKEN_PATTERN = re.compile(r"^([0-9]*)(.*)$", re.DOTALL)

# Longest accepted count (significant digits); longer runs are rejected, not converted.
_MAX_COUNT_DIGITS = 18


@dataclass(frozen=True)
class AnalysisFrequency:
    """
    A (count, unit) pair such as 2 weeks or 30 minutes.

    **Functionally**:
    - Immutable once constructed.
    - A count below one is clamped to one, so `AnalysisFrequency(0, DAY)` is
      the same frequency as `AnalysisFrequency(1, DAY)`.

    Attributes:
        count: Number of units per period (>= 1 after clamping).
        unit: The FrequencyUnit.
    """

    count: int
    unit: FrequencyUnit

    def __post_init__(self):
        if self.count < 1:
            # frozen dataclass: bypass __setattr__ to clamp
            object.__setattr__(self, "count", 1)

    @property
    def periods_per_year(self) -> float:
        """Annualization scaler: base_scaler(unit) / count."""
        return self.unit.base_scaler / self.count

    def __str__(self) -> str:
        return f"{self.count}{self.unit.value}"


def parse_frequency(token: str) -> AnalysisFrequency:
    """
    Parse a frequency token into an AnalysisFrequency.

    **Syntax**: `<optional integer><unit-suffix>`, case-insensitive, surrounding
    whitespace ignored. The digit run defaults to "1" when absent.

    Recognised suffixes:
        month / mon, week / w, day / d, minute / min

    Examples:
        >>> parse_frequency("2week")
        AnalysisFrequency(count=2, unit=<FrequencyUnit.WEEK: 'week'>)
        >>> parse_frequency(" Day ").periods_per_year
        238.0
        >>> parse_frequency("0min").count
        1

    Args:
        token: The frequency string.

    Returns:
        Parsed AnalysisFrequency (count clamped to >= 1).

    Raises:
        UnsupportedFrequencyError: Empty or unknown suffix, a count with more than
            18 significant digits, or a non-string token.
    """
    if not isinstance(token, str):
        raise UnsupportedFrequencyError(str(token))

    normalized = token.strip().lower()
    match = _TOKEN_PATTERN.match(normalized)
    digits, suffix = match.group(1), match.group(2)

    unit = _UNIT_SUFFIXES.get(suffix)
    if unit is None:
        raise UnsupportedFrequencyError(token)

    significant = digits.lstrip("0")
    if len(significant) > _MAX_COUNT_DIGITS:
        raise UnsupportedFrequencyError(token)

    count = int(significant or "0") if digits else 1
    return AnalysisFrequency(count=count, unit=unit)
