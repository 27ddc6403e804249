#!/usr/bin/env python3
"""
Enrich a price CSV with features and print its risk table.

**Purpose**: Runnable example wiring the whole pipeline together:
  1. Load a CSV through MarketData (optionally restricted to a date range).
  2. Append daily returns, a moving average and a rolling z-score.
  3. Evaluate the return column and print the risk table
     (mean, std, annualized_return, information_ratio, max_drawdown).

**Usage**:
    From project root:
    ```bash
    python actions/run_risk_analysis.py --csv data/raw/QQQ.csv --price-column closing_price \
        --frequency day --mode product
    python actions/run_risk_analysis.py --csv prices.csv --scaler 252 --start 2024-01-02
    ```

Logging goes to stderr (JSON by default, see QANALYTICS_LOG_FORMAT).
Exit codes: 0 success, 1 invalid input or data.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

# Add project root to Python path so we can import qanalytics modules
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from qanalytics.analytics.errors import AnalyticsError
from qanalytics.analytics.features import (
    with_daily_returns,
    with_moving_average,
    with_z_score,
)
from qanalytics.analytics.metrics import risk_analysis
from qanalytics.config.settings import get_settings
from qanalytics.data.market_data import MarketData, extract_column
from qanalytics.diagnostics.events import LoggingSink
from qanalytics.diagnostics.logging_config import configure_logging
from qanalytics.utils.reduction import reducer_from_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute features and risk statistics for a price CSV.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--csv", required=True, help="Path to a CSV with a header row.")
    parser.add_argument("--price-column", default="close", help="Price column. Default: close.")
    parser.add_argument("--timestamp-column", default="timestamp", help="Default: timestamp.")
    parser.add_argument("--start", default=None, help="Inclusive start date (ISO 8601).")
    parser.add_argument("--end", default=None, help="Inclusive end date (ISO 8601).")

    scaling = parser.add_mutually_exclusive_group(required=True)
    scaling.add_argument("--frequency", default=None, help="Frequency token, e.g. day, 2week, 30min.")
    scaling.add_argument("--scaler", type=float, default=None, help="Periods per year, e.g. 252.")

    parser.add_argument("--mode", default="sum", help="sum (default) or product.")
    parser.add_argument("--ma-window", type=int, default=20, help="Moving-average window. Default: 20.")
    parser.add_argument("--zscore-window", type=int, default=20, help="Z-score window. Default: 20.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Entry point. Returns the process exit code.
    """
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    sink = LoggingSink()

    try:
        start = datetime.fromisoformat(args.start) if args.start else None
        end = datetime.fromisoformat(args.end) if args.end else None
    except ValueError as exc:
        print(f"Error: invalid --start/--end date: {exc}", file=sys.stderr)
        return 1

    try:
        market = MarketData.from_csv(args.csv, timestamp_column=args.timestamp_column, sink=sink)
        if start is not None or end is not None:
            market = market.filter_date_range(args.timestamp_column, start, end)
        frame = market.collect()

        enriched = with_daily_returns(frame, args.price_column, "return", sink=sink)
        enriched = with_moving_average(
            enriched, args.price_column, args.ma_window, f"ma_{args.ma_window}", sink=sink
        )
        enriched = with_z_score(
            enriched, args.price_column, args.zscore_window, f"z_{args.price_column}", sink=sink
        )

        table = risk_analysis(
            extract_column(enriched, "return"),
            scaler=args.scaler,
            freq=args.frequency,
            mode=args.mode,
            reducer=reducer_from_settings(settings),
            sink=sink,
        )
    except (AnalyticsError, KeyError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Rows analysed: {len(enriched)}")
    print(table.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
