"""
Structured diagnostic events and the sinks that receive them.

**Conceptual**: Feature, metrics and indicator operations describe what they did
(e.g. "Computed 2-period moving average for close -> ma_2") as a `LogEvent`
handed to an `EventSink`. The sink is a parameter, not a global: by default
operations receive a `NullSink` and have no side effects at all, which keeps
them pure and trivially testable.

**Sinks**:
  - NullSink: drops everything (the default).
  - LoggingSink: serializes each event to one JSON line on the `qanalytics`
    logger (see qanalytics.diagnostics.logging_config).
  - RecordingSink: keeps events in a list, for tests and notebooks.

**Event schema** (JSON keys):
    timestamp, component, function, system_section, message, error
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Protocol

from qanalytics.utils.time import Clock, RealClock

logger = logging.getLogger("qanalytics.events")


@dataclass(frozen=True)
class LogEvent:
    """
    One diagnostic record.

    Attributes:
        component: Logical owner (e.g. "FeatureEngineering", "PerformanceMetrics").
        function: Operation name (e.g. "with_moving_average").
        system_section: Dotted area tag (e.g. "features.moving_average").
        message: Human-readable description.
        error: Error text for failure events, else None.
        timestamp: When the event was created (UTC); None until a sink stamps it.
    """

    component: str
    function: str
    system_section: str
    message: str
    error: str | None = None
    timestamp: datetime | None = field(default=None)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return payload


class EventSink(Protocol):
    """Anything that can receive a LogEvent."""

    def emit(self, event: LogEvent) -> None:
        ...


class NullSink:
    """Sink that discards every event."""

    def emit(self, event: LogEvent) -> None:
        return None


class RecordingSink:
    """
    Sink that stores events in memory, stamped with the injected clock.

    **Usage**:
        >>> sink = RecordingSink()
        >>> with_daily_returns(df, "close", "return", sink=sink)
        >>> sink.events[0].function
        'with_daily_returns'
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or RealClock()
        self.events: list[LogEvent] = []

    def emit(self, event: LogEvent) -> None:
        self.events.append(_stamp(event, self.clock))

    def functions(self) -> list[str]:
        """Names of the functions that emitted, in order."""
        return [event.function for event in self.events]


class LoggingSink:
    """
    Sink that forwards events to stdlib logging as JSON lines.

    Events with an `error` are logged at ERROR level, everything else at INFO.

    Args:
        clock: Timestamp source (defaults to RealClock).
        target: Logger to write to (defaults to the `qanalytics.events` logger).
    """

    def __init__(self, clock: Clock | None = None, target: logging.Logger | None = None):
        self.clock = clock or RealClock()
        self.target = target or logger

    def emit(self, event: LogEvent) -> None:
        stamped = _stamp(event, self.clock)
        level = logging.ERROR if stamped.error else logging.INFO
        self.target.log(level, json.dumps(stamped.to_dict()))


def _stamp(event: LogEvent, clock: Clock) -> LogEvent:
    if event.timestamp is not None:
        return event
    return LogEvent(
        component=event.component,
        function=event.function,
        system_section=event.system_section,
        message=event.message,
        error=event.error,
        timestamp=clock.now(),
    )


def resolve_sink(sink: EventSink | None) -> EventSink:
    """Return `sink`, or a NullSink when none was injected."""
    return sink if sink is not None else NullSink()
