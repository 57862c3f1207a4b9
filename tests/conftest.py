"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from ledgermind.api.main import create_app
from ledgermind.api.dependencies import get_insight_source
from ledgermind.domain.models import (
    Transaction,
    DailyRevenue,
    MetricsForInsight,
    RevenueConcentration,
    TrendAnalysis,
)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client with the LLM insight source disabled"""
    app = create_app()
    app.dependency_overrides[get_insight_source] = lambda: None
    return TestClient(app)


@pytest.fixture
def coffee_shop_transactions() -> list[Transaction]:
    """Four sales across two days in January and one in February"""
    return [
        Transaction(date=date(2024, 1, 15), product_name="Espresso", quantity=10, revenue=35.0, cost=8.0),
        Transaction(date=date(2024, 1, 15), product_name="Latte", quantity=5, revenue=25.0, cost=7.5),
        Transaction(date=date(2024, 1, 16), product_name="Espresso", quantity=12, revenue=42.0, cost=9.6),
        Transaction(date=date(2024, 2, 10), product_name="Cappuccino", quantity=8, revenue=36.0, cost=9.6),
    ]


@pytest.fixture
def quarter_of_sales() -> list[Transaction]:
    """90 days of steady sales across four products, three months"""
    base_date = date(2024, 1, 1)
    products = [("Espresso", 40.0, 10.0), ("Latte", 30.0, 9.0), ("Mocha", 20.0, 7.0), ("Tea", 10.0, 2.0)]
    transactions = []

    for day in range(90):
        for name, revenue, cost in products:
            transactions.append(
                Transaction(
                    date=base_date + timedelta(days=day),
                    product_name=name,
                    category="drinks",
                    quantity=1,
                    revenue=revenue,
                    cost=cost,
                )
            )

    return transactions


def _daily_series(revenues: list[float], start: date = date(2024, 3, 1)) -> list[DailyRevenue]:
    """Consecutive-day revenue series with zero cost"""
    return [
        DailyRevenue(date=(start + timedelta(days=i)).isoformat(), revenue=r, cost=0.0, profit=r)
        for i, r in enumerate(revenues)
    ]


def _metrics(
    profit_margin: float = 0.2,
    top3_share: float = 0.5,
    recent_trend: str = "stable",
    growth_rate: float = 0.0,
    anomaly_count: int = 2,
    health_score: int = 65,
) -> MetricsForInsight:
    """Metrics that trigger no fallback rule unless overridden"""
    return MetricsForInsight(
        total_revenue=10_000.0,
        total_profit=round(10_000.0 * profit_margin, 2),
        profit_margin=profit_margin,
        health_score=health_score,
        revenue_concentration=RevenueConcentration(
            top_product_share=top3_share / 2,
            top3_product_share=top3_share,
            diversification_score=round(1 - top3_share, 4),
        ),
        trend_analysis=TrendAnalysis(recent_trend=recent_trend, growth_rate=growth_rate),
        anomaly_count=anomaly_count,
        forecast_trend={"up": "increasing", "down": "decreasing"}.get(recent_trend, "stable"),
    )


@pytest.fixture
def make_daily_series():
    return _daily_series


@pytest.fixture
def make_metrics():
    return _metrics
