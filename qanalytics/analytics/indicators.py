"""
Weighted aggregation of execution indicators.

**Conceptual**: An execution log table has one row per order (or per batch of
orders) with per-row indicator values: `ffr` (fill ratio), `pa` (price
advantage) and `pos` (positive-rate), plus the columns that can serve as weights
(`count`, `deal_amount`, `value`). `indicator_analysis` collapses such a table
into three numbers, one per indicator, via a weighted average.

**Weighting methods**:
  - MEAN: weights are the `count` column, used with their sign.
  - AMOUNT_WEIGHTED: weights are `deal_amount`, numerator uses |weight|.
  - VALUE_WEIGHTED: weights are `value`, numerator uses |weight|.
`pos` is always MEAN-weighted by `count`, whatever method is requested.

**Mathematical**: Over rows where both value v and weight w are finite,
    numerator   = Σ v * w        (MEAN)
    numerator   = Σ v * |w|      (AMOUNT_WEIGHTED, VALUE_WEIGHTED)
    denominator = Σ w
    result      = numerator / denominator
If |denominator| <= machine epsilon the average is undefined and
ZeroWeightsError is raised.

**Example**: count=[5, 10, 20], ffr=[0.1, 0.5, 0.9], deal_amount=[100, 400, 50]
    MEAN(ffr)            = (0.5 + 5 + 18) / 35    = 0.671428...
    AMOUNT_WEIGHTED(ffr) = (10 + 200 + 45) / 550  = 0.463636...
"""

from enum import Enum

import numpy as np
import pandas as pd

from qanalytics.analytics.errors import (
    AnalyticsError,
    DatasetTransformError,
    InvalidIndicatorMethodError,
    MissingColumnError,
    ZeroWeightsError,
)
from qanalytics.diagnostics.events import EventSink, LogEvent, resolve_sink
from qanalytics.utils.math import MACHINE_EPSILON

_COMPONENT = "IndicatorAnalysis"

# Output row order
INDICATOR_NAMES = ("ffr", "pa", "pos")


class IndicatorMethod(Enum):
    """Which column supplies the weights for `ffr` and `pa`."""

    MEAN = "mean"
    AMOUNT_WEIGHTED = "amount_weighted"
    VALUE_WEIGHTED = "value_weighted"

    @property
    def weight_column(self) -> str:
        return _WEIGHT_COLUMNS[self]

    @property
    def uses_absolute_weights(self) -> bool:
        return self is not IndicatorMethod.MEAN

    @classmethod
    def parse(cls, method: str) -> "IndicatorMethod":
        """
        Parse "mean", "amount_weighted" or "value_weighted" (case-insensitive).

        Raises:
            InvalidIndicatorMethodError: For any other string.
        """
        normalized = str(method).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise InvalidIndicatorMethodError(str(method))


_WEIGHT_COLUMNS = {
    IndicatorMethod.MEAN: "count",
    IndicatorMethod.AMOUNT_WEIGHTED: "deal_amount",
    IndicatorMethod.VALUE_WEIGHTED: "value",
}


def required_columns(method: IndicatorMethod) -> list[str]:
    """Columns `indicator_analysis` needs for `method`, in check order."""
    columns = ["count", "ffr", "pa", "pos"]
    if method.weight_column not in columns:
        columns.append(method.weight_column)
    return columns


def _numeric_column(table: pd.DataFrame, column: str) -> np.ndarray:
    try:
        return pd.to_numeric(table[column], errors="raise").astype(float).to_numpy(dtype=float)
    except (TypeError, ValueError) as exc:
        raise DatasetTransformError(f"column '{column}' is not numeric", cause=exc) from exc


def weighted_average(
    values: np.ndarray,
    weights: np.ndarray,
    method: IndicatorMethod,
) -> float:
    """
    Weighted average of `values` against `weights`, skipping non-finite rows.

    Args:
        values: Indicator values.
        weights: Weights aligned with `values`.
        method: Decides whether the numerator uses |weight| or weight.

    Returns:
        The weighted average.

    Raises:
        ZeroWeightsError: If the surviving weights sum to (nearly) zero.
    """
    numerator = 0.0
    denominator = 0.0
    for value, weight in zip(values.tolist(), weights.tolist()):
        if not (np.isfinite(value) and np.isfinite(weight)):
            continue
        effective = abs(weight) if method.uses_absolute_weights else weight
        numerator += value * effective
        denominator += weight

    if abs(denominator) <= MACHINE_EPSILON:
        raise ZeroWeightsError(method)
    return numerator / denominator


def indicator_analysis(
    table: pd.DataFrame,
    method: IndicatorMethod = IndicatorMethod.MEAN,
    sink: EventSink | None = None,
) -> pd.DataFrame:
    """
    Aggregate `ffr`, `pa` and `pos` into a small indicator table.

    **Functionally**:
    - All required columns are checked before any arithmetic; the first missing
      one (in the order count, ffr, pa, pos, weight column) is reported.
    - `ffr` and `pa` use the requested method; `pos` always uses MEAN / `count`.
    - Nothing partial is returned: any failure raises.

    Args:
        table: Execution indicator table.
        method: Weighting method for ffr and pa.
        sink: Optional diagnostics sink.

    Returns:
        DataFrame with columns `indicator` and `value`, rows ffr, pa, pos.

    Raises:
        MissingColumnError: A required column is absent.
        ZeroWeightsError: Weights for a method sum to zero.
        DatasetTransformError: A required column is not numeric.
    """
    sink = resolve_sink(sink)
    try:
        for column in required_columns(method):
            if column not in table.columns:
                raise MissingColumnError(column)

        weights = _numeric_column(table, method.weight_column)
        counts = _numeric_column(table, "count")
        results = {
            "ffr": weighted_average(_numeric_column(table, "ffr"), weights, method),
            "pa": weighted_average(_numeric_column(table, "pa"), weights, method),
            "pos": weighted_average(_numeric_column(table, "pos"), counts, IndicatorMethod.MEAN),
        }
    except AnalyticsError as exc:
        sink.emit(LogEvent(
            component=_COMPONENT,
            function="indicator_analysis",
            system_section="metrics.indicators",
            message=f"Indicator analysis failed for method {method.value}",
            error=str(exc),
        ))
        raise

    sink.emit(LogEvent(
        component=_COMPONENT,
        function="indicator_analysis",
        system_section="metrics.indicators",
        message=f"Computed indicators using {method.value} over {len(table)} rows",
    ))
    return pd.DataFrame({
        "indicator": list(INDICATOR_NAMES),
        "value": [results[name] for name in INDICATOR_NAMES],
    })


def indicator_analysis_with_method(
    table: pd.DataFrame,
    method: str,
    sink: EventSink | None = None,
) -> pd.DataFrame:
    """
    String front-end for `indicator_analysis`.

    Raises:
        InvalidIndicatorMethodError: If `method` is not a known method name.
    """
    return indicator_analysis(table, IndicatorMethod.parse(method), sink=sink)
