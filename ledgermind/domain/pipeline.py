"""Analysis pipeline - runs aggregation, anomaly detection, scoring and forecasting in order"""

from datetime import date
from typing import List, Optional
from ledgermind.domain.models import (
    Transaction,
    AnalyticsSummary,
    BusinessHealthMetrics,
    AnalysisReport,
    ForecastResult,
    AnomalyDetectionResult,
    RevenueConcentration,
    MonthlyRevenue,
    MetricsForInsight,
    TrendAnalysis,
)
from ledgermind.domain.analytics import (
    Aggregation,
    aggregate,
    get_top_products,
    get_bottom_products,
    calculate_revenue_concentration,
)
from ledgermind.domain.scoring import calculate_business_health
from ledgermind.domain.anomaly import (
    DEFAULT_THRESHOLD,
    detect_anomalies,
    detect_anomaly_patterns,
    calculate_anomaly_frequency,
)
from ledgermind.domain.forecasting import DEFAULT_FORECAST_DAYS, forecast_revenue
from ledgermind.utils.date_utils import to_day
from ledgermind.utils.rounding import round_ratio

RECENT_MONTHS = 3
TREND_VOCABULARY = {"increasing": "up", "decreasing": "down", "stable": "stable"}


def _summarize(rollups: Aggregation, health: BusinessHealthMetrics) -> AnalyticsSummary:
    return AnalyticsSummary(
        total_revenue=rollups.totals.total_revenue,
        total_cost=rollups.totals.total_cost,
        total_profit=rollups.totals.total_profit,
        profit_margin=rollups.totals.profit_margin,
        health_score=health.score,
        daily_revenue=rollups.daily,
        monthly_revenue=rollups.monthly,
        top_products=get_top_products(rollups.products, 5),
        bottom_products=get_bottom_products(rollups.products, 5),
    )


def compute_analytics(transactions: List[Transaction], anomaly_count: int = 0) -> AnalyticsSummary:
    """Summary view: totals, daily/monthly series, top and bottom 5 products, health score"""
    rollups = aggregate(transactions)
    health = calculate_business_health(rollups.totals, rollups.products, rollups.monthly, anomaly_count)
    return _summarize(rollups, health)


def filter_by_date_range(
    transactions: List[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Transaction]:
    """Keep transactions whose calendar day falls inside [start_date, end_date]; open ends are unbounded"""
    return [
        txn
        for txn in transactions
        if (start_date is None or to_day(txn.date) >= start_date)
        and (end_date is None or to_day(txn.date) <= end_date)
    ]


def calculate_recent_growth(monthly_revenue: List[MonthlyRevenue], months: int = RECENT_MONTHS) -> float:
    """Growth across the last `months` months; 0 with fewer than two or a zero starting month"""
    recent = sorted(monthly_revenue, key=lambda m: m.month)[-months:]
    if len(recent) < 2 or recent[0].revenue == 0:
        return 0.0
    return round_ratio((recent[-1].revenue - recent[0].revenue) / recent[0].revenue)


def prepare_metrics_for_insight(
    analytics: AnalyticsSummary,
    forecast: ForecastResult,
    anomalies: AnomalyDetectionResult,
    concentration: RevenueConcentration,
) -> MetricsForInsight:
    """Collect the numbers insight synthesis works from"""
    return MetricsForInsight(
        total_revenue=analytics.total_revenue,
        total_profit=analytics.total_profit,
        profit_margin=analytics.profit_margin,
        health_score=analytics.health_score,
        revenue_concentration=concentration,
        trend_analysis=TrendAnalysis(
            recent_trend=TREND_VOCABULARY[forecast.trend],
            growth_rate=calculate_recent_growth(analytics.monthly_revenue),
        ),
        anomaly_count=len(anomalies.anomalies),
        forecast_trend=forecast.trend,
    )


def run_analysis(
    transactions: List[Transaction],
    forecast_days: int = DEFAULT_FORECAST_DAYS,
    anomaly_threshold: float = DEFAULT_THRESHOLD,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AnalysisReport:
    """
    Main entry point: full recompute of every derived view from raw transactions.

    Flow:
    1. Restrict to the optional [start_date, end_date] window
    2. Aggregate into daily, monthly and product rollups
    3. Detect anomalies over the daily revenue series
    4. Score business health using the anomaly count
    5. Forecast the daily series
    6. Derive concentration, anomaly patterns and insight metrics
    """
    rollups = aggregate(filter_by_date_range(transactions, start_date, end_date))

    anomalies = detect_anomalies(rollups.daily, anomaly_threshold)
    anomaly_count = len(anomalies.anomalies)

    health = calculate_business_health(rollups.totals, rollups.products, rollups.monthly, anomaly_count)
    analytics = _summarize(rollups, health)

    forecast = forecast_revenue(rollups.daily, forecast_days)
    concentration = calculate_revenue_concentration(rollups.products)

    return AnalysisReport(
        start_date=rollups.daily[0].date if rollups.daily else "",
        end_date=rollups.daily[-1].date if rollups.daily else "",
        total_days=len(rollups.daily),
        analytics=analytics,
        health=health,
        concentration=concentration,
        forecast=forecast,
        anomalies=anomalies,
        anomaly_streaks=detect_anomaly_patterns(anomalies.anomalies),
        anomaly_frequency=calculate_anomaly_frequency(anomalies.anomalies, len(rollups.daily)),
        metrics=prepare_metrics_for_insight(analytics, forecast, anomalies, concentration),
    )
