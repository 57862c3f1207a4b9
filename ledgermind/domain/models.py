"""Domain models - pure Python dataclasses representing sales analytics records"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Transaction:
    """Single sales record supplied by the ingestion layer"""

    date: date | datetime
    product_name: str
    quantity: float
    revenue: float
    cost: float
    category: Optional[str] = None


@dataclass
class DailyRevenue:
    """Revenue rollup for one calendar day"""

    date: str  # YYYY-MM-DD
    revenue: float
    cost: float
    profit: float


@dataclass
class MonthlyRevenue:
    """Revenue rollup for one calendar month"""

    month: str  # YYYY-MM
    revenue: float
    cost: float
    profit: float
    profit_margin: float


@dataclass
class ProductPerformance:
    """Per-product rollup"""

    product_name: str
    total_revenue: float
    total_cost: float
    total_profit: float
    profit_margin: float
    quantity: float
    transaction_count: int


@dataclass
class Totals:
    """Business-wide sums across the full transaction set"""

    total_revenue: float
    total_cost: float
    total_profit: float
    profit_margin: float


@dataclass
class RevenueConcentration:
    top_product_share: float
    top3_product_share: float
    diversification_score: float  # 1 = perfectly diversified


@dataclass
class BusinessHealthMetrics:
    """Composite health score and its components, all 0-100"""

    score: int
    profitability_score: int
    growth_score: int
    stability_score: int
    diversification_score: int


@dataclass
class AnalyticsSummary:
    total_revenue: float
    total_cost: float
    total_profit: float
    profit_margin: float
    health_score: int
    daily_revenue: List[DailyRevenue]
    monthly_revenue: List[MonthlyRevenue]
    top_products: List[ProductPerformance]
    bottom_products: List[ProductPerformance]


@dataclass
class Anomaly:
    """Day whose revenue deviates from the series mean beyond the z threshold"""

    date: str
    revenue: float
    expected_revenue: float
    deviation: float
    z_score: float
    severity: str  # "high" | "medium" | "low"
    type: str  # "spike" | "drop"
    explanation: str


@dataclass
class AnomalyDetectionResult:
    anomalies: List[Anomaly]
    mean: float
    std_dev: float
    threshold: float


@dataclass
class AnomalyStreak:
    """Run of same-type anomalies no more than two days apart"""

    start_date: str
    end_date: str
    length: int
    type: str


@dataclass
class AnomalyFrequency:
    frequency: float  # anomalies per day
    percentage: float  # percent of days flagged


@dataclass
class ConfidenceInterval:
    lower: float
    upper: float


@dataclass
class ForecastPoint:
    date: str
    predicted: float
    confidence: ConfidenceInterval


@dataclass
class ForecastResult:
    forecast: List[ForecastPoint]
    slope: float
    intercept: float
    r2: float
    trend: str  # "increasing" | "decreasing" | "stable"


@dataclass
class ForecastAccuracy:
    mape: float
    rmse: float


@dataclass
class TrendAnalysis:
    recent_trend: str  # "up" | "down" | "stable"
    growth_rate: float


@dataclass
class MetricsForInsight:
    """Numeric inputs to insight synthesis"""

    total_revenue: float
    total_profit: float
    profit_margin: float
    health_score: int
    revenue_concentration: RevenueConcentration
    trend_analysis: TrendAnalysis
    anomaly_count: int
    forecast_trend: str


@dataclass
class BusinessInsight:
    category: str  # revenue | profitability | risk | opportunity | warning | general
    priority: str  # high | medium | low
    title: str
    description: str
    impact: str
    recommendation: str


@dataclass
class InsightEngineResult:
    insights: List[BusinessInsight]
    executive_summary: str
    key_metrics: Dict[str, float]
    generated_at: datetime
    source: str = "rule_based"  # "llm" | "rule_based"


@dataclass
class AnalysisReport:
    """Everything the pipeline derives from one transaction list"""

    start_date: str
    end_date: str
    total_days: int
    analytics: AnalyticsSummary
    health: BusinessHealthMetrics
    concentration: RevenueConcentration
    forecast: ForecastResult
    anomalies: AnomalyDetectionResult
    anomaly_streaks: List[AnomalyStreak]
    anomaly_frequency: AnomalyFrequency
    metrics: MetricsForInsight
