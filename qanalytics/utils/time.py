"""
Clock abstractions used to timestamp diagnostic events.

The analytics core never calls datetime.now() directly. Diagnostic sinks ask
an injected Clock for the time instead, which keeps event streams reproducible
in tests (FrozenClock) while production code uses the system clock (RealClock).
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """
    Source of "now" for event timestamps.

    **Usage**: Pass a Clock to a sink (e.g. `LoggingSink(clock=FrozenClock(...))`);
    the sink calls `clock.now()` once per emitted event.
    """

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime (UTC)."""
        ...


class RealClock:
    """Clock backed by the system wall clock, always in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """
    Clock pinned to a fixed instant.

    Naive datetimes are interpreted as UTC so every event timestamp is
    timezone-aware regardless of how the test constructed it.

    Args:
        fixed_now: The instant returned by every call to now().
    """

    def __init__(self, fixed_now: datetime):
        if fixed_now.tzinfo is None:
            fixed_now = fixed_now.replace(tzinfo=timezone.utc)
        self._fixed_now = fixed_now

    def now(self) -> datetime:
        return self._fixed_now
