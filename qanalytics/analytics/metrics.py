"""
Risk and performance metrics for a series of periodic returns.

This module turns a return series into a fixed `PerformanceMetrics` record:
mean, standard deviation, cumulative and annualized return, annualized
volatility, information ratio (reported again as the Sharpe ratio) and maximum
drawdown.

Two accumulation conventions are supported:
  - SUM (arithmetic): returns add up. Matches the "additive" risk convention,
    and is the default for the string-based `risk_analysis` entry point.
  - PRODUCT (geometric): returns compound. Default for `PerformanceMetrics.evaluate`.

Input hygiene: NaN and ±inf entries are dropped before any computation, so a
contaminated series yields exactly the same metrics as its finite subsequence.
An empty finite subsequence yields a record of zeros.

Note on the Sharpe ratio: there is no benchmark or risk-free input here, and
`sharpe_ratio` is always equal to `information_ratio`.
"""

from dataclasses import asdict, dataclass
from enum import Enum

import numpy as np
import pandas as pd

from qanalytics.analytics.errors import (
    AnalyticsError,
    InvalidAccumulationModeError,
    MissingFrequencyOrScalerError,
)
from qanalytics.analytics.frequency import AnalysisFrequency, parse_frequency
from qanalytics.diagnostics.events import EventSink, LogEvent, resolve_sink
from qanalytics.utils.math import MACHINE_EPSILON, finite_values, sample_std
from qanalytics.utils.reduction import Reducer, SequentialReducer

_COMPONENT = "PerformanceMetrics"

# Row order of the table produced by risk_analysis()
RISK_METRIC_NAMES = ("mean", "std", "annualized_return", "information_ratio", "max_drawdown")


class AccumulationMode(Enum):
    """How returns accumulate over time."""

    SUM = "sum"
    PRODUCT = "product"

    @classmethod
    def parse(cls, mode: str) -> "AccumulationMode":
        """
        Parse "sum" or "product" (case-insensitive, surrounding whitespace ignored).

        Raises:
            InvalidAccumulationModeError: For any other string.
        """
        normalized = str(mode).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise InvalidAccumulationModeError(str(mode))


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Summary statistics of a return series.

    Attributes:
        mean_return: Arithmetic mean (SUM) or geometric mean (PRODUCT) per period.
        std_dev: Sample std of returns (SUM) or of log gross returns (PRODUCT).
        cumulative_return: Σr (SUM) or Π(1+r) - 1 (PRODUCT).
        annualized_return: Mean scaled to a year (SUM) or compounded to a year (PRODUCT).
        annualized_volatility: std_dev * sqrt(periods_per_year).
        sharpe_ratio: Always equal to information_ratio.
        information_ratio: mean / std * sqrt(periods_per_year), 0 when std ~ 0.
        max_drawdown: Most negative peak-to-trough move (<= 0).
    """

    mean_return: float
    std_dev: float
    cumulative_return: float
    annualized_return: float
    annualized_volatility: float
    sharpe_ratio: float
    information_ratio: float
    max_drawdown: float

    @classmethod
    def zero(cls) -> "PerformanceMetrics":
        """A record with every field set to 0.0."""
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def evaluate(
        cls,
        returns,
        periods_per_year: float,
        mode: AccumulationMode | str = AccumulationMode.PRODUCT,
        reducer: Reducer | None = None,
        sink: EventSink | None = None,
    ) -> "PerformanceMetrics":
        """
        Compute performance metrics for a return series.

        **Functionally**:
        - Non-finite entries are dropped first (order of the rest is kept).
        - No finite entries: returns `PerformanceMetrics.zero()`.
        - SUM mode: see `compute_sum_metrics`.
        - PRODUCT mode: see `compute_product_metrics`.

        Args:
            returns: Per-period fractional returns (Series, array or sequence).
            periods_per_year: Annualization scaler (e.g. 238 for daily data).
            mode: Accumulation convention (default PRODUCT); the strings
                  "sum" / "product" are accepted too.
            reducer: Summation strategy (default SequentialReducer).
            sink: Optional diagnostics sink.

        Returns:
            PerformanceMetrics record.

        Raises:
            InvalidAccumulationModeError: If `mode` is neither an AccumulationMode
                nor a recognised mode string.

        Example:
            >>> m = PerformanceMetrics.evaluate([0.01, -0.015, 0.02, -0.005], 252.0,
            ...                                 AccumulationMode.SUM)
            >>> round(m.annualized_return, 6), round(m.max_drawdown, 6)
            (0.63, -0.015)
        """
        if isinstance(mode, str):
            mode = AccumulationMode.parse(mode)
        elif not isinstance(mode, AccumulationMode):
            raise InvalidAccumulationModeError(str(mode))
        sink = resolve_sink(sink)
        reducer = reducer or SequentialReducer()
        clean = finite_values(returns)

        if len(clean) == 0:
            sink.emit(LogEvent(
                component=_COMPONENT,
                function="evaluate",
                system_section="metrics.evaluate",
                message="Received empty returns series; returning zeroed metrics",
            ))
            return cls.zero()

        if mode is AccumulationMode.SUM:
            metrics = compute_sum_metrics(clean, periods_per_year, reducer)
        else:
            metrics = compute_product_metrics(clean, periods_per_year, reducer)

        sink.emit(LogEvent(
            component=_COMPONENT,
            function="evaluate",
            system_section="metrics.evaluate",
            message=(
                f"Computed {mode.value} performance statistics over {len(clean)} returns "
                f"(periods_per_year={periods_per_year})"
            ),
        ))
        return metrics

    @classmethod
    def evaluate_with_frequency(
        cls,
        returns,
        frequency: AnalysisFrequency,
        mode: AccumulationMode = AccumulationMode.PRODUCT,
        reducer: Reducer | None = None,
        sink: EventSink | None = None,
    ) -> "PerformanceMetrics":
        """Evaluate using `frequency.periods_per_year` as the scaler."""
        return cls.evaluate(
            returns, frequency.periods_per_year, mode, reducer=reducer, sink=sink
        )

    @classmethod
    def evaluate_with_frequency_str(
        cls,
        returns,
        frequency: str,
        mode: AccumulationMode = AccumulationMode.PRODUCT,
        reducer: Reducer | None = None,
        sink: EventSink | None = None,
    ) -> "PerformanceMetrics":
        """
        Evaluate using a frequency token such as "day" or "2week".

        Raises:
            UnsupportedFrequencyError: If the token cannot be parsed.
        """
        parsed = parse_frequency(frequency)
        return cls.evaluate_with_frequency(returns, parsed, mode, reducer=reducer, sink=sink)


def compute_sum_metrics(
    returns: np.ndarray,
    periods_per_year: float,
    reducer: Reducer,
) -> PerformanceMetrics:
    """
    Arithmetic (SUM) metrics over a non-empty finite return array.

    **Mathematical**: For returns r_1..r_N and scaler P:
        mean        = Σr / N
        std         = sqrt( Σ(r - mean)² / (N - 1) )      (0 if N < 2)
        cumulative  = Σr
        ann_return  = mean * P
        ann_vol     = std * sqrt(P)
        IR          = mean / std * sqrt(P)                 (0 if std <= eps)
        max_dd      = min_t( S_t - max_{s<=t} S_s ),  S = running sum, peak starts at 0
    """
    count = len(returns)
    total = reducer.sum(returns)
    mean = total / count
    std = sample_std(returns, reducer)
    information_ratio = _information_ratio(mean, std, periods_per_year)

    return PerformanceMetrics(
        mean_return=mean,
        std_dev=std,
        cumulative_return=total,
        annualized_return=mean * periods_per_year,
        annualized_volatility=std * float(np.sqrt(periods_per_year)),
        sharpe_ratio=information_ratio,
        information_ratio=information_ratio,
        max_drawdown=compute_additive_max_drawdown(returns),
    )


def compute_product_metrics(
    returns: np.ndarray,
    periods_per_year: float,
    reducer: Reducer,
) -> PerformanceMetrics:
    """
    Geometric (PRODUCT) metrics over a non-empty finite return array.

    **Mathematical**: With curve C_i = Π_{j<=i} (1 + r_j) and scaler P:
        cumulative  = C_N - 1
        mean        = C_N^(1/N) - 1
        log_std     = sample std of ln(1 + r) over entries with 1 + r > 0
        ann_return  = C_N^(P/N) - 1
        ann_vol     = log_std * sqrt(P)
        IR          = mean / log_std * sqrt(P)             (0 if log_std <= eps)
        max_dd      = min_t( C_t / max_{s<=t} C_s - 1 )

    **Edge cases**:
    - Gross returns <= 0 (a loss of 100% or more) have no logarithm and are left
      out of log_std only; they still enter the curve.
    - A negative final growth factor with an even root yields NaN for the mean
      (there is no real geometric mean).
    """
    count = len(returns)
    gross = 1.0 + returns
    curve = np.cumprod(gross)
    growth = float(curve[-1])

    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        mean = float(np.power(growth, 1.0 / count)) - 1.0
        annualized_return = float(np.power(growth, periods_per_year / count)) - 1.0

    positive = gross[(gross > 0.0) & np.isfinite(gross)]
    log_std = sample_std(np.log(positive), reducer)
    information_ratio = _information_ratio(mean, log_std, periods_per_year)

    return PerformanceMetrics(
        mean_return=mean,
        std_dev=log_std,
        cumulative_return=growth - 1.0,
        annualized_return=annualized_return,
        annualized_volatility=log_std * float(np.sqrt(periods_per_year)),
        sharpe_ratio=information_ratio,
        information_ratio=information_ratio,
        max_drawdown=compute_compounded_max_drawdown(curve),
    )


def compute_additive_max_drawdown(returns: np.ndarray) -> float:
    """
    Worst drop of the running sum of returns below its running peak.

    Both the running sum and the peak start at 0, so an initial loss counts as
    a drawdown from zero. Returns a value <= 0.

    Example: [0.01, -0.015, 0.02, -0.005] -> sums [0.01, -0.005, 0.015, 0.01]
    -> worst gap -0.015.
    """
    if len(returns) == 0:
        return 0.0
    running_sum = np.cumsum(returns)
    # Peak includes the zero starting point
    peak = np.maximum.accumulate(np.concatenate(([0.0], running_sum)))[1:]
    return min(0.0, float(np.min(running_sum - peak)))


def compute_compounded_max_drawdown(curve: np.ndarray) -> float:
    """
    Worst ratio of a cumulative-product curve to its running peak, minus one.

    The peak starts at the curve's first value; an empty curve has no drawdown.
    Points where the peak is (numerically) zero have no defined ratio and are
    skipped. Returns a value <= 0.
    """
    if len(curve) == 0:
        return 0.0
    peak = np.maximum.accumulate(curve)
    defined = np.abs(peak) > MACHINE_EPSILON
    if not defined.any():
        return 0.0
    drawdown = curve[defined] / peak[defined] - 1.0
    return min(0.0, float(np.min(drawdown)))


def _information_ratio(mean: float, std: float, periods_per_year: float) -> float:
    if std > MACHINE_EPSILON:
        return mean / std * float(np.sqrt(periods_per_year))
    return 0.0


def risk_analysis(
    returns,
    scaler: float | None = None,
    freq: str | None = None,
    mode: str | None = None,
    reducer: Reducer | None = None,
    sink: EventSink | None = None,
) -> pd.DataFrame:
    """
    Two-column risk table (metric, risk) for a return series.

    **Functionally**:
    - The annualization scaler is `scaler` when given, otherwise derived from
      the `freq` token; `scaler` wins when both are supplied.
    - `mode` is "sum" (default) or "product".
    - Output has columns `metric` and `risk`, one row per name in
      RISK_METRIC_NAMES: mean, std, annualized_return, information_ratio,
      max_drawdown.

    Args:
        returns: Per-period returns (non-finite entries are ignored).
        scaler: Periods per year.
        freq: Frequency token (e.g. "day", "2week") used when scaler is None.
        mode: Accumulation mode string.
        reducer: Summation strategy (default SequentialReducer).
        sink: Optional diagnostics sink.

    Returns:
        Two-column DataFrame (metric, risk).

    Raises:
        MissingFrequencyOrScalerError: Neither scaler nor freq given.
        UnsupportedFrequencyError: freq cannot be parsed.
        InvalidAccumulationModeError: mode is not "sum"/"product".
    """
    sink = resolve_sink(sink)
    try:
        accumulation = AccumulationMode.parse(mode) if mode is not None else AccumulationMode.SUM
        if scaler is not None:
            periods_per_year = float(scaler)
        elif freq is not None:
            periods_per_year = parse_frequency(freq).periods_per_year
        else:
            raise MissingFrequencyOrScalerError()
    except AnalyticsError as exc:
        sink.emit(LogEvent(
            component=_COMPONENT,
            function="risk_analysis",
            system_section="metrics.risk_analysis",
            message="Rejected risk analysis request",
            error=str(exc),
        ))
        raise

    metrics = PerformanceMetrics.evaluate(
        returns, periods_per_year, accumulation, reducer=reducer, sink=sink
    )
    values = {
        "mean": metrics.mean_return,
        "std": metrics.std_dev,
        "annualized_return": metrics.annualized_return,
        "information_ratio": metrics.information_ratio,
        "max_drawdown": metrics.max_drawdown,
    }
    return pd.DataFrame({
        "metric": list(RISK_METRIC_NAMES),
        "risk": [values[name] for name in RISK_METRIC_NAMES],
    })
