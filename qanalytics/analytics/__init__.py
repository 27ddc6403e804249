"""
Feature transforms, frequency parsing, performance metrics and indicator analysis.

Includes rolling-window features (returns, moving average, z-score), the
sum/product performance evaluator and weighted execution-indicator aggregation.
"""
