"""
Recoverable error types for the analytics core.

**Conceptual**: Every data-dependent failure in the analytics package is raised
as a subclass of `AnalyticsError`, and each subclass carries the structured
payload a caller needs to react (the offending frequency token, the missing
column name, the weighting method). Callers can catch the base class to handle
"any bad input", or a specific subclass to retry with corrected input.

**What is NOT here**: Caller contract violations (e.g. a moving-average window
of zero) raise plain `ValueError`. Those indicate a bug in the calling code,
not a data condition, and should not be caught and retried.

Non-finite values inside a return series are never an error; the metrics
evaluator filters them silently.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from qanalytics.analytics.indicators import IndicatorMethod


class AnalyticsError(Exception):
    """
    Base class for all recoverable analytics errors.

    **Usage**: Catch this in orchestration code (actions/, notebooks) to report
    a clear message and stop, or catch a subclass to recover.
    """
    pass


class UnsupportedFrequencyError(AnalyticsError):
    """Raised when a frequency token is malformed or names an unknown unit."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(
            f"Unsupported frequency: {token!r}. "
            f"Expected '<optional integer><unit>' with unit one of "
            f"month/mon, week/w, day/d, minute/min (e.g. '2week', 'day')."
        )


class MissingColumnError(AnalyticsError):
    """Raised when a table lacks a column required by indicator analysis."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Required column '{column}' is missing from the table.")


class ZeroWeightsError(AnalyticsError):
    """
    Raised when the weights used for a weighted average sum to (nearly) zero.

    Attributes:
        method: The IndicatorMethod whose weight column summed to zero.
    """

    def __init__(self, method: "IndicatorMethod"):
        self.method = method
        super().__init__(
            f"Weights for method '{method.value}' sum to zero; "
            f"cannot compute a weighted average."
        )


class MissingFrequencyOrScalerError(AnalyticsError):
    """Raised when risk analysis receives neither an annualization scaler nor a frequency."""

    def __init__(self):
        super().__init__(
            "risk_analysis requires either an annualization scaler or a frequency string."
        )


class InvalidAccumulationModeError(AnalyticsError):
    """Raised when an accumulation mode string is neither 'sum' nor 'product'."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(
            f"Invalid accumulation mode: {mode!r}. Expected 'sum' or 'product'."
        )


class InvalidIndicatorMethodError(AnalyticsError):
    """Raised when an indicator method string is not recognised."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(
            f"Invalid indicator method: {method!r}. "
            f"Expected 'mean', 'amount_weighted' or 'value_weighted'."
        )


class DatasetError(AnalyticsError):
    """
    Wraps a failure raised by the underlying table engine (pandas).

    **Conceptual**: Malformed source tables and type-cast failures are reported
    as a single error family carrying the original exception as `cause` (and
    chained via `raise ... from`), so they are never swallowed and never
    confused with the analytics errors above.
    """

    kind = "dataset"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {self.kind} market data ({message}){detail}")


class DatasetLoadError(DatasetError):
    """Raised when a source table cannot be read or parsed."""

    kind = "load"


class DatasetTransformError(DatasetError):
    """Raised when selecting, filtering or casting table data fails."""

    kind = "transform"
