"""Revenue forecasting via ordinary least-squares linear regression"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple
from ledgermind.domain.models import (
    DailyRevenue,
    ForecastPoint,
    ForecastResult,
    ConfidenceInterval,
    ForecastAccuracy,
)
from ledgermind.utils.date_utils import add_days
from ledgermind.utils.rounding import round_money, round_ratio

DEFAULT_FORECAST_DAYS = 30
Z_95 = 1.96

# Absolute revenue units per day, not normalized to the business's scale
TREND_SLOPE_THRESHOLD = 0.5
TREND_MIN_R2 = 0.3


@dataclass
class Regression:
    slope: float
    intercept: float
    r2: float


def calculate_linear_regression(points: Sequence[Tuple[float, float]]) -> Regression:
    """
    Fit y = slope * x + intercept by least squares.

    Fewer than two points gives an all-zero fit. R^2 is floored at 0.
    """
    n = len(points)
    if n < 2:
        return Regression(slope=0.0, intercept=0.0, r2=0.0)

    mean_x = sum(x for x, _ in points) / n
    mean_y = sum(y for _, y in points) / n

    covariance = sum((x - mean_x) * (y - mean_y) for x, y in points)
    variance = sum((x - mean_x) ** 2 for x, _ in points)

    slope = covariance / variance if variance != 0 else 0.0
    intercept = mean_y - slope * mean_x

    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
    ss_tot = sum((y - mean_y) ** 2 for _, y in points)
    r2 = 1 - ss_res / ss_tot if ss_tot != 0 else 0.0

    return Regression(
        slope=round_ratio(slope),
        intercept=round_ratio(intercept),
        r2=round_ratio(max(0.0, r2)),
    )


def calculate_standard_error(points: Sequence[Tuple[float, float]], slope: float, intercept: float) -> float:
    """Residual standard error sqrt(SSres / (n - 2)); 0 for two points or fewer"""
    n = len(points)
    if n <= 2:
        return 0.0

    ss_res = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
    return math.sqrt(ss_res / (n - 2))


def determine_trend(
    slope: float,
    r2: float,
    slope_threshold: float = TREND_SLOPE_THRESHOLD,
    min_r2: float = TREND_MIN_R2,
) -> str:
    """A fit that explains under 30% of variance is reported as stable whatever its slope"""
    if r2 < min_r2:
        return "stable"
    if slope > slope_threshold:
        return "increasing"
    if slope < -slope_threshold:
        return "decreasing"
    return "stable"


def forecast_revenue(daily_revenue: List[DailyRevenue], days_to_forecast: int = DEFAULT_FORECAST_DAYS) -> ForecastResult:
    """
    Project revenue for the days following the last observed date.

    Each observed day gets x = its position in the sorted series, so gaps in
    the calendar are compressed. Predictions and lower bounds are floored at 0.
    """
    if not daily_revenue:
        return ForecastResult(forecast=[], slope=0.0, intercept=0.0, r2=0.0, trend="stable")

    ordered = sorted(daily_revenue, key=lambda d: d.date)
    points = [(float(index), day.revenue) for index, day in enumerate(ordered)]

    fit = calculate_linear_regression(points)
    margin_of_error = Z_95 * calculate_standard_error(points, fit.slope, fit.intercept)

    last_date = ordered[-1].date
    forecast = []
    for offset in range(1, days_to_forecast + 1):
        x = len(ordered) + offset - 1
        predicted = fit.slope * x + fit.intercept
        forecast.append(
            ForecastPoint(
                date=add_days(last_date, offset).isoformat(),
                predicted=max(0.0, round_money(predicted)),
                confidence=ConfidenceInterval(
                    lower=max(0.0, round_money(predicted - margin_of_error)),
                    upper=round_money(predicted + margin_of_error),
                ),
            )
        )

    return ForecastResult(
        forecast=forecast,
        slope=fit.slope,
        intercept=fit.intercept,
        r2=fit.r2,
        trend=determine_trend(fit.slope, fit.r2),
    )


def calculate_moving_average(daily_revenue: List[DailyRevenue], window_size: int = 7) -> List[DailyRevenue]:
    """Trailing moving average; the window shrinks at the start of the series"""
    ordered = sorted(daily_revenue, key=lambda d: d.date)

    smoothed = []
    for index, day in enumerate(ordered):
        window = ordered[max(0, index - window_size + 1) : index + 1]
        avg_revenue = sum(d.revenue for d in window) / len(window)
        avg_cost = sum(d.cost for d in window) / len(window)
        smoothed.append(
            DailyRevenue(
                date=day.date,
                revenue=round_money(avg_revenue),
                cost=round_money(avg_cost),
                profit=round_money(avg_revenue - avg_cost),
            )
        )

    return smoothed


def calculate_forecast_accuracy(actual: List[DailyRevenue], predictions: List[ForecastPoint]) -> ForecastAccuracy:
    """
    MAPE and RMSE of predictions against actuals matched by date.

    Dates with no actual value, or an actual of 0, are skipped.
    """
    actual_by_date = {d.date: d.revenue for d in actual}

    percent_errors = []
    squared_errors = []
    for prediction in predictions:
        observed = actual_by_date.get(prediction.date)
        if not observed:
            continue
        percent_errors.append(abs((observed - prediction.predicted) / observed))
        squared_errors.append((observed - prediction.predicted) ** 2)

    if not percent_errors:
        return ForecastAccuracy(mape=0.0, rmse=0.0)

    return ForecastAccuracy(
        mape=round_ratio(sum(percent_errors) / len(percent_errors)),
        rmse=round_money(math.sqrt(sum(squared_errors) / len(squared_errors))),
    )
