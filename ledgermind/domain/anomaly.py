"""Z-score anomaly detection over the daily revenue series"""

import math
from typing import Dict, List
from ledgermind.domain.models import (
    DailyRevenue,
    Anomaly,
    AnomalyDetectionResult,
    AnomalyStreak,
    AnomalyFrequency,
)
from ledgermind.utils.date_utils import to_day, days_between
from ledgermind.utils.rounding import round_money, round_ratio

DEFAULT_THRESHOLD = 2.0
SEVERITY_ORDER = {"high": 3, "medium": 2, "low": 1}
STREAK_MAX_GAP_DAYS = 2


def calculate_mean(values: List[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_standard_deviation(values: List[float], mean: float) -> float:
    """Population standard deviation (divides by N)"""
    if not values:
        return 0.0
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def calculate_z_score(value: float, mean: float, std_dev: float) -> float:
    # A flat series has no outliers
    if std_dev == 0:
        return 0.0
    return (value - mean) / std_dev


def determine_severity(z_score: float) -> str:
    abs_z = abs(z_score)
    if abs_z >= 3:
        return "high"
    if abs_z >= 2.5:
        return "medium"
    return "low"


def generate_explanation(day: str, revenue: float, mean: float, anomaly_type: str, severity: str) -> str:
    percent_diff = abs((revenue - mean) / mean * 100) if mean else 0.0
    direction = "higher" if anomaly_type == "spike" else "lower"
    severity_text = {"high": "significantly", "medium": "notably", "low": "moderately"}[severity]
    cause = (
        "exceptional sales performance, promotion impact, or seasonal demand"
        if anomaly_type == "spike"
        else "operational issues, reduced traffic, or external factors"
    )

    when = to_day(day)
    return (
        f"Revenue on {when:%A}, {when:%b} {when.day} was {severity_text} {direction} than average "
        f"({percent_diff:.1f}% deviation). This may indicate {cause}."
    )


def detect_anomalies(daily_revenue: List[DailyRevenue], threshold: float = DEFAULT_THRESHOLD) -> AnomalyDetectionResult:
    """
    Flag days whose revenue lies at least `threshold` standard deviations from the mean.

    Statistics are computed over the full series on every call. Anomalies are
    returned most severe first, then by descending |z|.
    """
    if not daily_revenue:
        return AnomalyDetectionResult(anomalies=[], mean=0.0, std_dev=0.0, threshold=threshold)

    revenues = [day.revenue for day in daily_revenue]
    mean = calculate_mean(revenues)
    std_dev = calculate_standard_deviation(revenues, mean)

    anomalies = []
    for day in daily_revenue:
        z_score = calculate_z_score(day.revenue, mean, std_dev)
        # Flat series yields no anomalies, even at threshold 0
        if std_dev == 0 or abs(z_score) < threshold:
            continue

        anomaly_type = "spike" if z_score > 0 else "drop"
        severity = determine_severity(z_score)
        anomalies.append(
            Anomaly(
                date=day.date,
                revenue=day.revenue,
                expected_revenue=round_money(mean),
                deviation=round_money(day.revenue - mean),
                z_score=round_ratio(z_score),
                severity=severity,
                type=anomaly_type,
                explanation=generate_explanation(day.date, day.revenue, mean, anomaly_type, severity),
            )
        )

    anomalies.sort(key=lambda a: (SEVERITY_ORDER[a.severity], abs(a.z_score)), reverse=True)

    return AnomalyDetectionResult(
        anomalies=anomalies,
        mean=round_money(mean),
        std_dev=round_money(std_dev),
        threshold=threshold,
    )


def filter_anomalies_by_severity(anomalies: List[Anomaly], min_severity: str) -> List[Anomaly]:
    """Keep anomalies at or above the given severity"""
    floor = SEVERITY_ORDER[min_severity]
    return [a for a in anomalies if SEVERITY_ORDER[a.severity] >= floor]


def group_anomalies_by_type(anomalies: List[Anomaly]) -> Dict[str, List[Anomaly]]:
    return {
        "spikes": [a for a in anomalies if a.type == "spike"],
        "drops": [a for a in anomalies if a.type == "drop"],
    }


def calculate_anomaly_frequency(anomalies: List[Anomaly], total_days: int) -> AnomalyFrequency:
    if total_days == 0:
        return AnomalyFrequency(frequency=0.0, percentage=0.0)

    ratio = len(anomalies) / total_days
    return AnomalyFrequency(frequency=round_ratio(ratio), percentage=round_money(ratio * 100))


def detect_anomaly_patterns(anomalies: List[Anomaly]) -> List[AnomalyStreak]:
    """
    Find runs of same-type anomalies where neighbours are at most two days apart.

    Only runs of two or more are reported, in date order.
    """
    if not anomalies:
        return []

    ordered = sorted(anomalies, key=lambda a: a.date)
    streaks: List[AnomalyStreak] = []
    current = [ordered[0]]

    def close(run: List[Anomaly]) -> None:
        if len(run) >= 2:
            streaks.append(
                AnomalyStreak(start_date=run[0].date, end_date=run[-1].date, length=len(run), type=run[0].type)
            )

    for prev, curr in zip(ordered, ordered[1:]):
        if days_between(prev.date, curr.date) <= STREAK_MAX_GAP_DAYS and prev.type == curr.type:
            current.append(curr)
        else:
            close(current)
            current = [curr]

    close(current)
    return streaks
