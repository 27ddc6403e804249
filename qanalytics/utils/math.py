"""
Numeric coercion and statistical helpers shared by the analytics modules.

This module provides the small building blocks the feature engine and metrics
evaluator are assembled from: converting a table column to a float array,
filtering non-finite values, and a sample standard deviation routed through a
pluggable reducer.

The two coercion helpers deliberately treat bad values differently:
  - Feature transforms zero-fill (a null price becomes 0.0).
  - The metrics evaluator drops non-finite entries instead.
"""

import numpy as np
import pandas as pd

from qanalytics.utils.reduction import Reducer, SequentialReducer

# float64 machine epsilon (2.220446049250313e-16), used for all near-zero guards
MACHINE_EPSILON = float(np.finfo(np.float64).eps)


def coerce_to_float_array(column) -> np.ndarray:
    """
    Convert a table column into a float64 array, zero-filling bad entries.

    **Conceptual**: Feature transforms must produce one output per input row, so
    they cannot drop rows. Anything that is not a usable number (None, NaN,
    non-numeric strings) is replaced with 0.0 for the purpose of the transform.

    **Functionally**:
    - Input: pandas Series, numpy array, or any sequence.
    - Output: 1-D float64 numpy array of the same length.
    - Nulls and values pandas cannot parse as numbers become 0.0.
    - ±inf is kept as-is (it is numeric, just not finite).

    Args:
        column: Column values to coerce.

    Returns:
        Float64 numpy array aligned to the input order.
    """
    series = column if isinstance(column, pd.Series) else pd.Series(list(column), dtype=object)
    # errors="coerce" maps unparseable entries to NaN, which we then zero-fill
    numeric = pd.to_numeric(series, errors="coerce")
    return numeric.astype(float).fillna(0.0).to_numpy(dtype=float)


def finite_values(values) -> np.ndarray:
    """
    Return only the finite entries of `values`, preserving their order.

    **Functionally**:
    - NaN, +inf and -inf are removed; nulls (None / pd.NA) and non-numeric
      entries count as NaN.
    - The result of filtering an already-finite series is that same series,
      so calling this twice is harmless.

    Args:
        values: pandas Series, numpy array, or sequence of numbers.

    Returns:
        Float64 numpy array of the finite subsequence.
    """
    if isinstance(values, np.ndarray) and values.dtype.kind == "f":
        array = values.astype(float, copy=False)
    else:
        series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
        array = pd.to_numeric(series, errors="coerce").astype(float).to_numpy(dtype=float)
    return array[np.isfinite(array)]


def sample_std(values: np.ndarray, reducer: Reducer | None = None) -> float:
    """
    Compute the sample standard deviation (Bessel-corrected, N - 1 denominator).

    **Mathematical**:
        mean = Σ x_i / N
        std  = sqrt( Σ (x_i - mean)² / (N - 1) )

    **Edge cases**:
    - Fewer than two values: returns 0.0 (the estimator is undefined).

    Args:
        values: Finite float values.
        reducer: Reducer used for the sums (defaults to SequentialReducer).

    Returns:
        Sample standard deviation as a float.
    """
    reducer = reducer or SequentialReducer()
    count = len(values)
    if count < 2:
        return 0.0
    mean = reducer.sum(values) / count
    variance = reducer.sum_squared_deviations(values, mean) / (count - 1)
    return float(np.sqrt(variance))
