"""
Summation reducers for the metrics evaluator.

**Conceptual**: Most statistics in this package boil down to a handful of
associative reductions (a plain sum and a sum of squared deviations).
Hiding them behind a tiny `Reducer` protocol lets the evaluator stay a plain
sequential computation in tests while production callers can swap in a
threaded reducer for very long series.

**Numerical note**: Floating-point addition is not associative, so the threaded
reducer can differ from the sequential one in the last few bits. The contract
is equality within ~1e-9 relative tolerance, never bit-exactness.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)


class Reducer(Protocol):
    """
    Protocol for associative reductions over a 1-D float array.

    Any object implementing these two methods can be passed as `reducer=`
    to `PerformanceMetrics.evaluate`.
    """

    def sum(self, values: np.ndarray) -> float:
        """Return Σ values."""
        ...

    def sum_squared_deviations(self, values: np.ndarray, center: float) -> float:
        """Return Σ (values - center)²."""
        ...


class SequentialReducer:
    """
    Left-to-right fold on the calling thread.

    This is the default everywhere; results are deterministic for a given input.
    """

    def sum(self, values: np.ndarray) -> float:
        total = 0.0
        for value in np.asarray(values, dtype=float).tolist():
            total += value
        return total

    def sum_squared_deviations(self, values: np.ndarray, center: float) -> float:
        total = 0.0
        for value in np.asarray(values, dtype=float).tolist():
            diff = value - center
            total += diff * diff
        return total


class ThreadedReducer:
    """
    Chunked reduction on a thread pool.

    **Functionally**:
    - Arrays shorter than `chunk_size` are reduced sequentially (no pool spin-up).
    - Longer arrays are split into contiguous chunks of `chunk_size`; each chunk
      is reduced with numpy on a worker thread, then partials are added in
      chunk order.
    - No retries, no timeouts: a failure inside a worker propagates to the caller.

    Args:
        max_workers: Thread pool size (>= 1).
        chunk_size: Elements per chunk (>= 1). Also the parallel threshold.
    """

    def __init__(self, max_workers: int = 4, chunk_size: int = 100_000):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self._sequential = SequentialReducer()

    def _chunks(self, values: np.ndarray) -> list[np.ndarray]:
        return [
            values[start:start + self.chunk_size]
            for start in range(0, len(values), self.chunk_size)
        ]

    def _reduce(self, values: np.ndarray, partial) -> float:
        chunks = self._chunks(values)
        logger.debug(
            "Reducing %d values in %d chunks on %d workers",
            len(values), len(chunks), self.max_workers,
        )
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # map preserves chunk order, so partials are combined deterministically
            partials = list(executor.map(partial, chunks))
        total = 0.0
        for value in partials:
            total += value
        return total

    def sum(self, values: np.ndarray) -> float:
        values = np.asarray(values, dtype=float)
        if len(values) < self.chunk_size:
            return self._sequential.sum(values)
        return self._reduce(values, lambda chunk: float(np.sum(chunk)))

    def sum_squared_deviations(self, values: np.ndarray, center: float) -> float:
        values = np.asarray(values, dtype=float)
        if len(values) < self.chunk_size:
            return self._sequential.sum_squared_deviations(values, center)

        def partial(chunk: np.ndarray) -> float:
            diff = chunk - center
            return float(np.dot(diff, diff))

        return self._reduce(values, partial)


def reducer_from_settings(settings) -> ThreadedReducer:
    """
    Build a ThreadedReducer from AnalyticsSettings.

    Args:
        settings: An `AnalyticsSettings` instance (see qanalytics.config.settings).

    Returns:
        ThreadedReducer with `max_workers` and `chunk_size` taken from settings.
    """
    return ThreadedReducer(
        max_workers=settings.max_workers,
        chunk_size=settings.parallel_threshold,
    )
