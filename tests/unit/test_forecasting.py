"""Unit tests for linear-regression revenue forecasting"""

import pytest
from ledgermind.domain.models import DailyRevenue, ForecastPoint, ConfidenceInterval
from ledgermind.domain.forecasting import (
    calculate_linear_regression,
    calculate_standard_error,
    determine_trend,
    forecast_revenue,
    calculate_moving_average,
    calculate_forecast_accuracy,
)


def test_linear_series_fits_exactly(make_daily_series):
    """Test a perfect line recovers slope, intercept and R^2 of 1"""
    series = make_daily_series([5.0 * x + 100.0 for x in range(10)])

    result = forecast_revenue(series, 30)

    assert result.slope == 5
    assert result.intercept == 100
    assert result.r2 == 1
    assert result.trend == "increasing"
    assert len(result.forecast) == 30

    first = result.forecast[0]
    assert first.date == "2024-03-11"
    assert first.predicted == 150
    assert first.confidence.lower == pytest.approx(150)
    assert first.confidence.upper == pytest.approx(150)
    assert result.forecast[-1].date == "2024-04-09"


def test_noisy_series_is_stable(make_daily_series):
    """Test a positive slope with poor fit is still reported as stable"""
    series = make_daily_series([0.0, 300.0, 0.0, 300.0, 0.0, 300.0])

    result = forecast_revenue(series, 7)

    assert result.slope == pytest.approx(25.7143, abs=1e-4)
    assert result.r2 == pytest.approx(0.0857, abs=1e-4)
    assert result.trend == "stable"


def test_noisy_series_band_contains_prediction(make_daily_series):
    """Test lower <= predicted <= upper with a nonzero band"""
    series = make_daily_series([0.0, 300.0, 0.0, 300.0, 0.0, 300.0])

    for point in forecast_revenue(series, 7).forecast:
        assert point.confidence.lower <= point.predicted <= point.confidence.upper
        assert point.confidence.upper > point.predicted


def test_declining_series_floors_at_zero(make_daily_series):
    """Test predictions and lower bounds never go negative"""
    series = make_daily_series([200.0 - 3.0 * x for x in range(10)])

    result = forecast_revenue(series, 100)

    assert result.trend == "decreasing"
    assert result.forecast[-1].predicted == 0
    for point in result.forecast:
        assert point.predicted >= 0
        assert point.confidence.lower >= 0


def test_calendar_gaps_are_compressed():
    """Test x is the position in the series, not the calendar offset"""
    series = [
        DailyRevenue(date="2024-01-20", revenue=30.0, cost=0.0, profit=30.0),
        DailyRevenue(date="2024-01-01", revenue=10.0, cost=0.0, profit=10.0),
        DailyRevenue(date="2024-01-05", revenue=20.0, cost=0.0, profit=20.0),
    ]

    result = forecast_revenue(series, 1)

    assert result.slope == 10
    assert result.intercept == 10
    assert result.forecast[0].date == "2024-01-21"
    assert result.forecast[0].predicted == 40


def test_empty_series_forecast():
    """Test no data gives an empty stable forecast"""
    result = forecast_revenue([], 30)

    assert result.forecast == []
    assert result.trend == "stable"


def test_single_point_regression_is_zero():
    """Test fewer than two points yields an all-zero fit"""
    fit = calculate_linear_regression([(0.0, 250.0)])

    assert (fit.slope, fit.intercept, fit.r2) == (0, 0, 0)


def test_standard_error_requires_three_points():
    """Test n <= 2 gives zero residual standard error"""
    assert calculate_standard_error([(0.0, 1.0), (1.0, 5.0)], 4.0, 1.0) == 0
    assert calculate_standard_error([(0.0, 1.0), (1.0, 3.0), (2.0, 1.0)], 0.0, 1.0) == pytest.approx(2.0)


def test_determine_trend():
    """Test R^2 gate and slope threshold"""
    assert determine_trend(10.0, 0.29) == "stable"
    assert determine_trend(0.6, 0.9) == "increasing"
    assert determine_trend(-0.6, 0.9) == "decreasing"
    assert determine_trend(0.5, 0.9) == "stable"
    assert determine_trend(0.6, 0.9, slope_threshold=1.0) == "stable"


def test_moving_average(make_daily_series):
    """Test trailing window that shrinks at the start"""
    series = make_daily_series([10.0, 20.0, 30.0, 40.0])

    smoothed = calculate_moving_average(series, window_size=2)

    assert [d.revenue for d in smoothed] == [10.0, 15.0, 25.0, 35.0]
    assert [d.date for d in smoothed] == [d.date for d in series]


def test_forecast_accuracy(make_daily_series):
    """Test MAPE and RMSE skip missing and zero actuals"""
    actual = make_daily_series([100.0, 200.0, 0.0])
    predictions = [
        ForecastPoint(date=day, predicted=predicted, confidence=ConfidenceInterval(lower=0.0, upper=0.0))
        for day, predicted in [("2024-03-01", 110.0), ("2024-03-02", 180.0), ("2024-03-03", 50.0), ("2024-03-04", 10.0)]
    ]

    accuracy = calculate_forecast_accuracy(actual, predictions)

    assert accuracy.mape == 0.1
    assert accuracy.rmse == 15.81

    nothing = calculate_forecast_accuracy(actual, [])
    assert (nothing.mape, nothing.rmse) == (0, 0)


def test_moving_average_rounds_ties_up(make_daily_series):
    """Test an exact half-cent average rounds up"""
    smoothed = calculate_moving_average(make_daily_series([0.25, 0.0]), window_size=2)

    assert smoothed[1].revenue == 0.13
