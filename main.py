"""
qanalytics – Main entry point.

Minimal smoke run: evaluates a tiny hard-coded return series and prints the
risk table, confirming the package imports and computes end to end.
"""

from qanalytics.analytics.metrics import risk_analysis


def main() -> None:
    """Print the risk table for a four-period sample series."""
    print(risk_analysis([0.01, -0.015, 0.02, -0.005], scaler=252.0).to_string(index=False))


if __name__ == "__main__":
    main()
