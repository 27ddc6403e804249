"""
Tests for qanalytics/analytics/indicators.py

Uses the three-row execution table from conftest (count, ffr, pa, pos,
deal_amount, value) whose weighted averages can be checked by hand.
"""

import numpy as np
import pandas as pd
import pytest

from qanalytics.analytics.errors import (
    AnalyticsError,
    DatasetTransformError,
    InvalidIndicatorMethodError,
    MissingColumnError,
    ZeroWeightsError,
)
from qanalytics.analytics.indicators import (
    INDICATOR_NAMES,
    IndicatorMethod,
    indicator_analysis,
    indicator_analysis_with_method,
    required_columns,
    weighted_average,
)
from qanalytics.diagnostics.events import RecordingSink


def indicator_values(frame: pd.DataFrame) -> dict[str, float]:
    return dict(zip(frame["indicator"], frame["value"]))


# ============================================================================
# Known values
# ============================================================================

def test_mean_method_weights_by_count(indicator_frame):
    values = indicator_values(indicator_analysis(indicator_frame, IndicatorMethod.MEAN))

    assert values["ffr"] == pytest.approx(0.6714285714285715, abs=1e-12)
    assert values["pa"] == pytest.approx(0.48571428571428577, abs=1e-12)
    assert values["pos"] == pytest.approx(0.6142857142857143, abs=1e-12)


def test_amount_weighted_method(indicator_frame):
    values = indicator_values(indicator_analysis(indicator_frame, IndicatorMethod.AMOUNT_WEIGHTED))

    assert values["ffr"] == pytest.approx(0.4636363636363636, abs=1e-12)
    assert values["pa"] == pytest.approx(0.6545454545454545, abs=1e-12)
    # pos ignores the requested method
    assert values["pos"] == pytest.approx(0.6142857142857143, abs=1e-12)


def test_value_weighted_method(indicator_frame):
    values = indicator_values(indicator_analysis(indicator_frame, IndicatorMethod.VALUE_WEIGHTED))

    assert values["ffr"] == pytest.approx(0.46, abs=1e-12)
    assert values["pa"] == pytest.approx(0.34, abs=1e-12)
    assert values["pos"] == pytest.approx(0.6142857142857143, abs=1e-12)


def test_output_layout(indicator_frame):
    result = indicator_analysis(indicator_frame)

    assert list(result.columns) == ["indicator", "value"]
    assert tuple(result["indicator"]) == INDICATOR_NAMES


def test_default_method_is_mean(indicator_frame):
    pd.testing.assert_frame_equal(
        indicator_analysis(indicator_frame),
        indicator_analysis(indicator_frame, IndicatorMethod.MEAN),
    )


# ============================================================================
# Weighting rules
# ============================================================================

def test_negative_amount_uses_absolute_numerator_signed_denominator(indicator_frame):
    """deal_amount [-100, 400, 50]: numerator uses |w|, denominator keeps the sign."""
    frame = indicator_frame.assign(deal_amount=[-100.0, 400.0, 50.0])

    values = indicator_values(indicator_analysis(frame, IndicatorMethod.AMOUNT_WEIGHTED))

    assert values["ffr"] == pytest.approx((10.0 + 200.0 + 45.0) / 350.0, abs=1e-12)
    assert values["pa"] == pytest.approx((20.0 + 320.0 + 20.0) / 350.0, abs=1e-12)


def test_mean_method_keeps_signed_weights():
    """MEAN multiplies by the raw weight."""
    result = weighted_average(
        np.array([1.0, 2.0]), np.array([-1.0, 3.0]), IndicatorMethod.MEAN
    )

    assert result == pytest.approx((-1.0 + 6.0) / 2.0)


def test_non_finite_rows_are_skipped(indicator_frame):
    """A NaN value drops that row from both numerator and denominator."""
    frame = indicator_frame.assign(ffr=[np.nan, 0.5, 0.9])

    values = indicator_values(indicator_analysis(frame, IndicatorMethod.MEAN))

    assert values["ffr"] == pytest.approx((5.0 + 18.0) / 30.0, abs=1e-12)
    # other indicators still use every row
    assert values["pa"] == pytest.approx(0.48571428571428577, abs=1e-12)


# ============================================================================
# Failures
# ============================================================================

@pytest.mark.parametrize(
    "method, dropped",
    [
        (IndicatorMethod.MEAN, "count"),
        (IndicatorMethod.MEAN, "pa"),
        (IndicatorMethod.AMOUNT_WEIGHTED, "deal_amount"),
        (IndicatorMethod.VALUE_WEIGHTED, "value"),
        (IndicatorMethod.VALUE_WEIGHTED, "pos"),
    ],
)
def test_missing_required_column(indicator_frame, method, dropped):
    frame = indicator_frame.drop(columns=[dropped])

    with pytest.raises(MissingColumnError) as excinfo:
        indicator_analysis(frame, method)

    assert excinfo.value.column == dropped


def test_mean_method_does_not_need_optional_weight_columns(indicator_frame):
    frame = indicator_frame.drop(columns=["deal_amount", "value"])

    assert len(indicator_analysis(frame, IndicatorMethod.MEAN)) == 3


def test_first_missing_column_is_reported_in_check_order():
    frame = pd.DataFrame({"ffr": [0.1], "pos": [0.2]})

    with pytest.raises(MissingColumnError) as excinfo:
        indicator_analysis(frame, IndicatorMethod.AMOUNT_WEIGHTED)

    assert excinfo.value.column == "count"


def test_required_columns_per_method():
    assert required_columns(IndicatorMethod.MEAN) == ["count", "ffr", "pa", "pos"]
    assert required_columns(IndicatorMethod.AMOUNT_WEIGHTED) == ["count", "ffr", "pa", "pos", "deal_amount"]
    assert required_columns(IndicatorMethod.VALUE_WEIGHTED) == ["count", "ffr", "pa", "pos", "value"]


def test_zero_amount_weights_raise(indicator_frame):
    frame = indicator_frame.assign(deal_amount=[100.0, -100.0, 0.0])

    with pytest.raises(ZeroWeightsError) as excinfo:
        indicator_analysis(frame, IndicatorMethod.AMOUNT_WEIGHTED)

    assert excinfo.value.method is IndicatorMethod.AMOUNT_WEIGHTED


def test_zero_counts_fail_pos_even_for_value_method(indicator_frame):
    """pos is always count-weighted, so zero counts break every method."""
    frame = indicator_frame.assign(count=[0.0, 0.0, 0.0])

    with pytest.raises(ZeroWeightsError) as excinfo:
        indicator_analysis(frame, IndicatorMethod.VALUE_WEIGHTED)

    assert excinfo.value.method is IndicatorMethod.MEAN


def test_all_rows_non_finite_is_zero_weight():
    with pytest.raises(ZeroWeightsError):
        weighted_average(np.array([np.nan, np.inf]), np.array([1.0, 2.0]), IndicatorMethod.MEAN)


def test_non_numeric_column_is_a_transform_error(indicator_frame):
    frame = indicator_frame.assign(ffr=["high", "low", "mid"])

    with pytest.raises(DatasetTransformError) as excinfo:
        indicator_analysis(frame)

    assert isinstance(excinfo.value, AnalyticsError)
    assert excinfo.value.cause is not None


# ============================================================================
# String front-end
# ============================================================================

@pytest.mark.parametrize(
    "text, method",
    [
        ("mean", IndicatorMethod.MEAN),
        ("amount_weighted", IndicatorMethod.AMOUNT_WEIGHTED),
        (" VALUE_WEIGHTED ", IndicatorMethod.VALUE_WEIGHTED),
    ],
)
def test_with_method_matches_enum(indicator_frame, text, method):
    pd.testing.assert_frame_equal(
        indicator_analysis_with_method(indicator_frame, text),
        indicator_analysis(indicator_frame, method),
    )


def test_with_method_rejects_unknown_method(indicator_frame):
    with pytest.raises(InvalidIndicatorMethodError) as excinfo:
        indicator_analysis_with_method(indicator_frame, "median")

    assert excinfo.value.method == "median"


# ============================================================================
# Diagnostics
# ============================================================================

def test_success_and_failure_are_reported_to_sink(indicator_frame):
    sink = RecordingSink()

    indicator_analysis(indicator_frame, sink=sink)
    with pytest.raises(MissingColumnError):
        indicator_analysis(indicator_frame.drop(columns=["value"]), IndicatorMethod.VALUE_WEIGHTED, sink=sink)

    assert sink.functions() == ["indicator_analysis", "indicator_analysis"]
    assert sink.events[0].error is None
    assert "value" in sink.events[1].error
