"""Health scoring engine - weighted 0-100 composite of profitability, growth, stability and diversification"""

from typing import List
from ledgermind.domain.models import Totals, ProductPerformance, MonthlyRevenue, BusinessHealthMetrics
from ledgermind.domain.analytics import calculate_growth_rate, calculate_revenue_concentration
from ledgermind.utils.rounding import clamp, round_half_up

PROFITABILITY_WEIGHT = 0.30
GROWTH_WEIGHT = 0.25
STABILITY_WEIGHT = 0.25
DIVERSIFICATION_WEIGHT = 0.20

ANOMALY_PENALTY = 10


def profitability_score(profit_margin: float) -> float:
    """33%+ margin saturates at 100"""
    return clamp(profit_margin * 300, 0, 100)


def growth_score(growth_rate: float) -> float:
    """Maps -50%..+50% total-period growth onto 0..100"""
    return clamp((growth_rate + 0.5) * 100, 0, 100)


def stability_score(anomaly_count: int) -> float:
    """Each anomaly costs 10 points, floor at 0"""
    return clamp(100 - anomaly_count * ANOMALY_PENALTY, 0, 100)


def calculate_business_health(
    totals: Totals,
    products: List[ProductPerformance],
    monthly_revenue: List[MonthlyRevenue],
    anomaly_count: int,
) -> BusinessHealthMetrics:
    """
    Calculate health score from 0 (critical) to 100 (excellent).

    Scoring weights:
    - 30%: Profitability (profit margin x 3, capped)
    - 25%: Growth (first-to-last month revenue change)
    - 25%: Stability (penalized per revenue anomaly)
    - 20%: Diversification (1 - top-3 product revenue share)

    The overall score is weighted from the unrounded components; each
    component is then rounded independently for reporting, so the two can
    drift by a point.
    """
    profitability = profitability_score(totals.profit_margin)
    growth = growth_score(calculate_growth_rate(monthly_revenue))
    stability = stability_score(anomaly_count)
    diversification = clamp(calculate_revenue_concentration(products).diversification_score * 100, 0, 100)

    score = (
        PROFITABILITY_WEIGHT * profitability
        + GROWTH_WEIGHT * growth
        + STABILITY_WEIGHT * stability
        + DIVERSIFICATION_WEIGHT * diversification
    )

    return BusinessHealthMetrics(
        score=round_half_up(clamp(score, 0, 100)),
        profitability_score=round_half_up(profitability),
        growth_score=round_half_up(growth),
        stability_score=round_half_up(stability),
        diversification_score=round_half_up(diversification),
    )
