"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from typing import List, Literal, Optional, Union

from ledgermind.domain.models import (
    Transaction,
    MetricsForInsight,
    RevenueConcentration,
    TrendAnalysis,
    AnalyticsSummary,
    BusinessHealthMetrics,
    ForecastResult,
    AnomalyDetectionResult,
    AnomalyStreak,
    AnomalyFrequency,
    InsightEngineResult,
)
from ledgermind.utils.rounding import round_ratio


class TransactionSchema(BaseModel):
    """Single sales record"""

    # Timestamps are accepted and truncated to their calendar day during aggregation
    date: Union[date, datetime]
    product_name: str = Field(..., min_length=1)
    category: Optional[str] = None
    quantity: float = Field(..., gt=0)
    revenue: float = Field(..., ge=0)
    cost: float = Field(..., ge=0)

    def to_domain(self) -> Transaction:
        return Transaction(
            date=self.date,
            product_name=self.product_name,
            category=self.category,
            quantity=self.quantity,
            revenue=self.revenue,
            cost=self.cost,
        )


class AnalysisRequest(BaseModel):
    """Request body for POST /v1/analytics and POST /v1/insights/analyze"""

    transactions: List[TransactionSchema] = Field(..., min_length=1, description="Sales records to analyze")
    forecast_days: Optional[int] = Field(None, ge=1, le=365, description="Forecast horizon in days")
    anomaly_threshold: Optional[float] = Field(None, gt=0, description="Z-score threshold for anomalies")
    start_date: Optional[date] = Field(None, description="First day to include (inclusive)")
    end_date: Optional[date] = Field(None, description="Last day to include (inclusive)")

    @model_validator(mode="after")
    def check_window(self) -> "AnalysisRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class PeriodSchema(BaseModel):
    start_date: str
    end_date: str
    total_days: int


class AnalysisResponse(BaseModel):
    """Response for POST /v1/analytics"""

    period: PeriodSchema
    analytics: AnalyticsSummary
    health: BusinessHealthMetrics
    concentration: RevenueConcentration
    forecast: ForecastResult
    anomalies: AnomalyDetectionResult
    anomaly_streaks: List[AnomalyStreak]
    anomaly_frequency: AnomalyFrequency
    metrics: MetricsForInsight


class ConcentrationSchema(BaseModel):
    top_product_share: float = Field(..., ge=0, le=1)
    top3_product_share: float = Field(..., ge=0, le=1)


class TrendAnalysisSchema(BaseModel):
    recent_trend: Literal["up", "down", "stable"]
    growth_rate: float


class MetricsSchema(BaseModel):
    """Precomputed metrics for insight synthesis"""

    total_revenue: float
    total_profit: float
    profit_margin: float
    health_score: int = Field(..., ge=0, le=100)
    revenue_concentration: ConcentrationSchema
    trend_analysis: TrendAnalysisSchema
    anomaly_count: int = Field(..., ge=0)
    forecast_trend: Literal["increasing", "decreasing", "stable"]

    def to_domain(self) -> MetricsForInsight:
        concentration = self.revenue_concentration
        return MetricsForInsight(
            total_revenue=self.total_revenue,
            total_profit=self.total_profit,
            profit_margin=self.profit_margin,
            health_score=self.health_score,
            revenue_concentration=RevenueConcentration(
                top_product_share=concentration.top_product_share,
                top3_product_share=concentration.top3_product_share,
                diversification_score=round_ratio(1 - concentration.top3_product_share),
            ),
            trend_analysis=TrendAnalysis(
                recent_trend=self.trend_analysis.recent_trend,
                growth_rate=self.trend_analysis.growth_rate,
            ),
            anomaly_count=self.anomaly_count,
            forecast_trend=self.forecast_trend,
        )


class InsightsRequest(BaseModel):
    """Request body for POST /v1/insights"""

    metrics: MetricsSchema


class InsightsResponse(BaseModel):
    """Response for POST /v1/insights and POST /v1/insights/analyze"""

    insights: InsightEngineResult
    metrics: MetricsForInsight
