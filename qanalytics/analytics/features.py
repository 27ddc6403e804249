"""
Rolling-window feature transforms over a single table column.

**Conceptual**: Each helper reads one numeric column from a DataFrame, computes a
derived series of the same length, and returns a *new* DataFrame with exactly
one extra column appended. The input DataFrame is never modified, so transforms
can be chained freely:

    >>> enriched = with_daily_returns(df, "close", "return")
    >>> enriched = with_moving_average(enriched, "close", 2, "ma_2")
    >>> enriched = with_z_score(enriched, "close", 3, "z_close")

**Shared conventions**:
  - Empty column: the input table is returned unchanged (as a copy), no error.
  - Nulls and non-numeric entries are treated as 0.0 for the transform only.
  - Warm-up rows are never NaN: the moving average expands over a partial
    window and the z-score uses a shorter window until the full one is available.
  - Window sizes outside the documented range raise ValueError (caller bug).

**Implementation note**: The moving average and z-score keep explicit running
sums (and sums of squares) updated in arrival order: add the new value, then
subtract the one leaving the window. pandas `.rolling(W, min_periods=1)` gives
the same values up to rounding, but its own summation order differs, and the
results here are pinned to this exact update sequence.
"""

from collections import deque

import numpy as np
import pandas as pd

from qanalytics.diagnostics.events import EventSink, LogEvent, resolve_sink
from qanalytics.utils.math import MACHINE_EPSILON, coerce_to_float_array

_COMPONENT = "FeatureEngineering"


def _column_values(df: pd.DataFrame, column: str) -> np.ndarray:
    if column not in df.columns:
        raise KeyError(
            f"Column '{column}' not found in DataFrame. "
            f"Available columns: {list(df.columns)}"
        )
    return coerce_to_float_array(df[column])


def _append_column(df: pd.DataFrame, output_column: str, values: np.ndarray | list[float]) -> pd.DataFrame:
    enriched = df.copy()
    # Assign positionally so a non-default index cannot misalign the new column
    enriched[output_column] = np.asarray(values, dtype=float)
    return enriched


def with_daily_returns(
    df: pd.DataFrame,
    price_column: str,
    output_column: str,
    sink: EventSink | None = None,
) -> pd.DataFrame:
    """
    Append simple period-over-period returns computed from a price column.

    **Mathematical**:
        r_0 = 0
        r_t = (P_t / P_{t-1}) - 1            for t >= 1
        r_t = 0       if |P_{t-1}| < machine epsilon

    **Functionally**:
    - The first row is 0.0 rather than NaN so the output has no holes.
    - A (near-)zero previous price would divide by zero; that row is 0.0.

    Args:
        df: Source table, rows in chronological order.
        price_column: Column holding prices.
        output_column: Name of the appended returns column.
        sink: Optional diagnostics sink.

    Returns:
        Copy of `df` with `output_column` appended.

    Raises:
        KeyError: If `price_column` is missing.

    Example:
        >>> df = pd.DataFrame({"close": [101.0, 102.0]})
        >>> out = with_daily_returns(df, "close", "return")
        >>> [round(r, 6) for r in out["return"]]
        [0.0, 0.009901]
    """
    prices = _column_values(df, price_column)
    if len(prices) == 0:
        return df.copy()

    prev, current = prices[:-1], prices[1:]
    with np.errstate(divide="ignore", invalid="ignore"):
        ratios = np.where(np.abs(prev) < MACHINE_EPSILON, 0.0, current / prev - 1.0)
    returns = np.concatenate(([0.0], ratios))

    enriched = _append_column(df, output_column, returns)
    resolve_sink(sink).emit(LogEvent(
        component=_COMPONENT,
        function="with_daily_returns",
        system_section="features.returns",
        message=f"Computed daily returns for {price_column} -> {output_column}",
    ))
    return enriched


def with_moving_average(
    df: pd.DataFrame,
    price_column: str,
    window: int,
    output_column: str,
    sink: EventSink | None = None,
) -> pd.DataFrame:
    """
    Append a simple moving average with an expanding warm-up.

    **Mathematical**: With a running sum S updated as values arrive,
        MA_t = S_t / (t + 1)                       for t < W   (partial window)
        MA_t = (S_t - P_{t-W}) / W                 for t >= W
    i.e. once the window is full, the value leaving it is subtracted before
    dividing by W.

    **Example**: prices [100, 101, 102, 104, 103], W = 2
        -> [100, 100.5, 101.5, 103, 103.5]

    Args:
        df: Source table.
        price_column: Column to average.
        window: Window length W (>= 1).
        output_column: Name of the appended column.
        sink: Optional diagnostics sink.

    Returns:
        Copy of `df` with `output_column` appended.

    Raises:
        ValueError: If window < 1.
        KeyError: If `price_column` is missing.
    """
    if window < 1:
        raise ValueError(f"window size must be positive, got {window}")
    prices = _column_values(df, price_column)
    if len(prices) == 0:
        return df.copy()

    values = prices.tolist()
    averages = []
    running_sum = 0.0
    for idx, value in enumerate(values):
        running_sum += value
        if idx >= window:
            running_sum -= values[idx - window]
            averages.append(running_sum / window)
        else:
            averages.append(running_sum / (idx + 1))

    enriched = _append_column(df, output_column, averages)
    resolve_sink(sink).emit(LogEvent(
        component=_COMPONENT,
        function="with_moving_average",
        system_section="features.moving_average",
        message=f"Computed {window}-period moving average for {price_column} -> {output_column}",
    ))
    return enriched


def with_z_score(
    df: pd.DataFrame,
    column: str,
    window: int,
    output_column: str,
    sink: EventSink | None = None,
) -> pd.DataFrame:
    """
    Append a rolling z-score computed over the last `window` values.

    **Mathematical**: Over the current window of length n (1 <= n <= W),
        mean = Σx / n
        var  = max(0, Σx² / n - mean²)        (population variance)
        z_t  = (x_t - mean) / sqrt(var)       if sqrt(var) > machine epsilon
        z_t  = 0                              otherwise

    **Functionally**:
    - The window grows from 1 to W during warm-up, then slides. Warm-up
      z-scores therefore use a shorter window rather than NaN padding.
    - The first row always scores 0.0 (a single value has zero spread).
    - Negative variances from cancellation in Σx²/n - mean² are clamped to 0.

    Args:
        df: Source table.
        column: Column to normalize.
        window: Window length W (> 1).
        output_column: Name of the appended column.
        sink: Optional diagnostics sink.

    Returns:
        Copy of `df` with `output_column` appended.

    Raises:
        ValueError: If window <= 1.
        KeyError: If `column` is missing.
    """
    if window <= 1:
        raise ValueError(f"window size must exceed one to compute z-scores, got {window}")
    values = _column_values(df, column)
    if len(values) == 0:
        return df.copy()

    zscores = []
    window_values: deque[float] = deque()
    running_sum = 0.0
    running_sum_sq = 0.0

    for value in values.tolist():
        window_values.append(value)
        running_sum += value
        running_sum_sq += value * value

        if len(window_values) > window:
            oldest = window_values.popleft()
            running_sum -= oldest
            running_sum_sq -= oldest * oldest

        length = float(len(window_values))
        mean = running_sum / length
        variance = max(0.0, running_sum_sq / length - mean * mean)
        std = float(np.sqrt(variance))
        zscores.append((value - mean) / std if std > MACHINE_EPSILON else 0.0)

    enriched = _append_column(df, output_column, zscores)
    resolve_sink(sink).emit(LogEvent(
        component=_COMPONENT,
        function="with_z_score",
        system_section="features.zscore",
        message=f"Computed {window}-period z-score for {column} -> {output_column}",
    ))
    return enriched
