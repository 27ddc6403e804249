#!/usr/bin/env python3
"""
Aggregate an execution indicator CSV into ffr / pa / pos.

**Usage**:
    From project root:
    ```bash
    python actions/run_indicator_analysis.py --csv executions.csv --method amount_weighted
    ```

The CSV needs columns count, ffr, pa, pos, plus deal_amount for
amount_weighted or value for value_weighted.
Exit codes: 0 success, 1 invalid input or data.
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path so we can import qanalytics modules
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from qanalytics.analytics.errors import AnalyticsError
from qanalytics.analytics.indicators import indicator_analysis_with_method
from qanalytics.config.settings import get_settings
from qanalytics.data.market_data import MarketData
from qanalytics.diagnostics.events import LoggingSink
from qanalytics.diagnostics.logging_config import configure_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Weighted execution indicator analysis.")
    parser.add_argument("--csv", required=True, help="Execution indicator CSV.")
    parser.add_argument(
        "--method",
        default="mean",
        help="mean (default), amount_weighted or value_weighted.",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    sink = LoggingSink()

    try:
        table = MarketData.from_csv(args.csv, sink=sink).collect()
        result = indicator_analysis_with_method(table, args.method, sink=sink)
    except AnalyticsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(result.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
