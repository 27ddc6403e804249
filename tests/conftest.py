"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import qanalytics...' and
'import actions...' work, and isolates global state (settings singleton,
package logger handlers) between tests.
"""
import logging
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from qanalytics.config.settings import reset_settings


@pytest.fixture(autouse=True)
def isolate_global_state():
    """Reset cached settings and undo any handlers configure_logging() installed."""
    package_logger = logging.getLogger("qanalytics")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    reset_settings()

    yield

    for handler in list(package_logger.handlers):
        if handler not in handlers:
            package_logger.removeHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate
    reset_settings()


@pytest.fixture
def sample_returns() -> list[float]:
    """Four-period return series with hand-checkable statistics."""
    return [0.01, -0.015, 0.02, -0.005]


@pytest.fixture
def indicator_frame() -> pd.DataFrame:
    """Execution indicator table with every optional weight column present."""
    return pd.DataFrame({
        "count": [5.0, 10.0, 20.0],
        "ffr": [0.1, 0.5, 0.9],
        "pa": [0.2, 0.8, 0.4],
        "pos": [0.3, 0.6, 0.7],
        "deal_amount": [100.0, 400.0, 50.0],
        "value": [1000.0, 200.0, 800.0],
    })


@pytest.fixture
def price_csv(tmp_path) -> Path:
    """Five daily closes, 2024-01-01 .. 2024-01-05."""
    path = tmp_path / "prices.csv"
    path.write_text(
        "timestamp,close\n"
        "2024-01-01T00:00:00Z,100\n"
        "2024-01-02T00:00:00Z,101\n"
        "2024-01-03T00:00:00Z,102\n"
        "2024-01-04T00:00:00Z,104\n"
        "2024-01-05T00:00:00Z,103\n"
    )
    return path
