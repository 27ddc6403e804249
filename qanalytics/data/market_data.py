"""
Thin load/query layer over pandas for feeding the analytics core.

**Conceptual**: The analytics functions never read files. This module is the
single place where CSV input enters the system and where table-engine failures
are translated into `DatasetLoadError` / `DatasetTransformError` (with the
original pandas exception chained as the cause), so callers only ever handle
one error family.

Every operation returns a new `MarketData`; the wrapped DataFrame is never
modified in place.

**Usage example**:
    >>> market = MarketData.from_csv("data/raw/QQQ.csv")
    >>> window = market.filter_date_range("timestamp", start, end).collect()
    >>> enriched = with_daily_returns(window, "close", "return")
    >>> returns = extract_column(enriched, "return")
"""

from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd

from qanalytics.analytics.errors import DatasetLoadError, DatasetTransformError
from qanalytics.diagnostics.events import EventSink, LogEvent, resolve_sink

_COMPONENT = "MarketData"


def _to_utc_timestamp(value: datetime) -> pd.Timestamp:
    stamp = pd.Timestamp(value)
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


class MarketData:
    """
    Immutable wrapper around a DataFrame of market observations.

    Args:
        frame: The table to wrap (copied on construction).
        sink: Optional diagnostics sink, inherited by derived MarketData objects.
    """

    def __init__(self, frame: pd.DataFrame, sink: EventSink | None = None):
        self._frame = frame.copy()
        self._sink = resolve_sink(sink)

    def _emit(self, function: str, section: str, message: str, error: str | None = None):
        self._sink.emit(LogEvent(
            component=_COMPONENT,
            function=function,
            system_section=section,
            message=message,
            error=error,
        ))

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, sink: EventSink | None = None) -> "MarketData":
        return cls(frame, sink=sink)

    @classmethod
    def from_csv(
        cls,
        path: Path | str,
        timestamp_column: str = "timestamp",
        sink: EventSink | None = None,
    ) -> "MarketData":
        """
        Read a CSV file with a header row.

        **Functionally**:
        - If `timestamp_column` is present it is parsed as ISO 8601 and
          normalized to UTC; other columns keep pandas' inferred dtypes.
        - A file without `timestamp_column` loads fine (not every table is a
          time series, e.g. execution indicator logs).

        Args:
            path: CSV file path.
            timestamp_column: Column to parse as datetimes.
            sink: Optional diagnostics sink.

        Returns:
            MarketData wrapping the loaded table.

        Raises:
            DatasetLoadError: Missing file, unreadable CSV, or unparseable timestamps.
        """
        path = Path(path)
        sink = resolve_sink(sink)
        try:
            if not path.exists():
                raise FileNotFoundError(f"CSV not found: {path}")
            frame = pd.read_csv(path)
            if timestamp_column in frame.columns:
                frame[timestamp_column] = pd.to_datetime(
                    frame[timestamp_column], format="ISO8601", utc=True
                )
        except (OSError, ValueError, pd.errors.ParserError) as exc:
            sink.emit(LogEvent(
                component=_COMPONENT,
                function="from_csv",
                system_section="dataset.load",
                message=f"Failed to load {path}",
                error=str(exc),
            ))
            raise DatasetLoadError(str(path), cause=exc) from exc

        market = cls(frame, sink=sink)
        market._emit("from_csv", "dataset.load", f"Loaded dataset from {path}")
        return market

    def filter_date_range(
        self,
        column: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> "MarketData":
        """
        Keep rows whose `column` lies within [start, end] (both inclusive).

        Rows with a null timestamp are always dropped. Naive bounds are
        interpreted as UTC.

        Raises:
            DatasetTransformError: Unknown column or non-datetime values.
        """
        if column not in self._frame.columns:
            raise DatasetTransformError(f"unknown column '{column}'")
        try:
            stamps = pd.to_datetime(self._frame[column], utc=True)
            mask = stamps.notna()
            if start is not None:
                mask &= stamps >= _to_utc_timestamp(start)
            if end is not None:
                mask &= stamps <= _to_utc_timestamp(end)
        except (TypeError, ValueError) as exc:
            raise DatasetTransformError(f"cannot filter on column '{column}'", cause=exc) from exc

        filtered = MarketData(self._frame[mask.to_numpy()], sink=self._sink)
        filtered._emit("filter_date_range", "dataset.filter", f"Applied date filter on column {column}")
        return filtered

    def select_columns(self, columns: list[str]) -> "MarketData":
        """
        Project onto `columns`, in the given order.

        Raises:
            DatasetTransformError: If any column is absent.
        """
        missing = [name for name in columns if name not in self._frame.columns]
        if missing:
            raise DatasetTransformError(
                f"unknown columns {missing}; available: {list(self._frame.columns)}"
            )
        selected = MarketData(self._frame[list(columns)], sink=self._sink)
        selected._emit("select_columns", "dataset.transform", f"Selected columns: {', '.join(columns)}")
        return selected

    def collect(self) -> pd.DataFrame:
        """Materialize the current view as a fresh DataFrame with a 0..n-1 index."""
        return self._frame.reset_index(drop=True)


def extract_column(df: pd.DataFrame, name: str) -> np.ndarray:
    """
    Pull a numeric column out of a table as a float array for the evaluator.

    Non-finite entries are kept: the metrics evaluator filters them itself.

    Raises:
        DatasetTransformError: Unknown column or values that are not numeric.
    """
    if name not in df.columns:
        raise DatasetTransformError(f"unknown column '{name}'")
    try:
        return pd.to_numeric(df[name], errors="raise").astype(float).to_numpy(dtype=float)
    except (TypeError, ValueError) as exc:
        raise DatasetTransformError(f"column '{name}' is not numeric", cause=exc) from exc
