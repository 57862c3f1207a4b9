"""Unit tests for insight synthesis and the rule-based fallback"""

from datetime import datetime, timezone
from ledgermind.domain.exceptions import InsightGenerationError
from ledgermind.domain.models import InsightEngineResult, MetricsForInsight
from ledgermind.domain.insights import (
    MAX_INSIGHTS,
    RuleBasedInsightSource,
    build_key_metrics,
    format_metrics_for_prompt,
    generate_fallback_insights,
    synthesize_insights,
)


class FailingSource:
    """Primary source that always fails"""

    def __init__(self):
        self.calls = 0

    async def generate(self, metrics: MetricsForInsight) -> InsightEngineResult:
        self.calls += 1
        raise InsightGenerationError("service unavailable")


class CannedSource:
    """Primary source returning a fixed result"""

    async def generate(self, metrics: MetricsForInsight) -> InsightEngineResult:
        return InsightEngineResult(
            insights=[],
            executive_summary="Canned summary.",
            key_metrics=build_key_metrics(metrics),
            generated_at=datetime.now(timezone.utc),
            source="llm",
        )


def test_unremarkable_metrics_produce_no_insights(make_metrics):
    """Test metrics inside every neutral band yield an empty list"""
    result = generate_fallback_insights(make_metrics())

    assert result.insights == []
    assert result.source == "rule_based"
    assert result.executive_summary == "Business shows moderate health with room for improvement. Key priorities: ."


def test_struggling_business(make_metrics):
    """Test concentration, thin margin, decline, volatility and poor health all fire"""
    metrics = make_metrics(
        profit_margin=0.1, top3_share=0.8, recent_trend="down", growth_rate=-0.12, anomaly_count=6, health_score=40
    )

    result = generate_fallback_insights(metrics)

    assert [i.title for i in result.insights] == [
        "High Revenue Concentration Risk",
        "Low Profit Margin Alert",
        "Declining Revenue Trend",
        "Revenue Volatility Detected",
        "Business Health Concerns",
    ]
    assert [i.priority for i in result.insights] == ["high", "high", "high", "medium", "high"]
    assert "80.0%" in result.insights[0].description
    assert "12.0%" in result.insights[2].description
    assert result.executive_summary == (
        "Business requires urgent attention across multiple areas. Key priorities: "
        "high revenue concentration risk, low profit margin alert, declining revenue trend, business health concerns."
    )


def test_thriving_business(make_metrics):
    """Test strong margin, growth, stability and excellent health"""
    metrics = make_metrics(profit_margin=0.4, recent_trend="up", growth_rate=0.25, anomaly_count=0, health_score=85)

    result = generate_fallback_insights(metrics)

    assert [(i.category, i.priority, i.title) for i in result.insights] == [
        ("profitability", "medium", "Strong Profit Margins"),
        ("opportunity", "medium", "Positive Growth Trajectory"),
        ("profitability", "low", "Stable Revenue Patterns"),
        ("opportunity", "low", "Excellent Business Health"),
    ]
    assert result.executive_summary == (
        "Business is performing well with 40.0% profit margin and up revenue trend. Key priorities: ."
    )


def test_rule_boundaries_are_quiet(make_metrics):
    """Test values sitting exactly on each threshold trigger nothing"""
    boundary_cases = [
        make_metrics(top3_share=0.70),
        make_metrics(profit_margin=0.15),
        make_metrics(profit_margin=0.30),
        make_metrics(anomaly_count=5),
        make_metrics(anomaly_count=1),
        make_metrics(health_score=50),
        make_metrics(health_score=79),
    ]

    for metrics in boundary_cases:
        assert generate_fallback_insights(metrics).insights == []


def test_fallback_is_deterministic(make_metrics):
    """Test identical metrics give identical insights and summary"""
    metrics = make_metrics(profit_margin=0.05, top3_share=0.9, health_score=30)

    first = generate_fallback_insights(metrics)
    second = generate_fallback_insights(metrics)

    assert first.insights == second.insights
    assert first.executive_summary == second.executive_summary
    assert first.key_metrics == second.key_metrics


def test_fallback_never_exceeds_cap(make_metrics):
    """Test the rule set stays within the insight cap"""
    metrics = make_metrics(
        profit_margin=0.05, top3_share=0.95, recent_trend="down", growth_rate=-0.5, anomaly_count=20, health_score=10
    )

    assert len(generate_fallback_insights(metrics).insights) <= MAX_INSIGHTS


def test_key_metrics(make_metrics):
    """Test key metrics echo the inputs"""
    key_metrics = build_key_metrics(make_metrics(profit_margin=0.25, growth_rate=0.1, health_score=72))

    assert key_metrics == {
        "total_revenue": 10_000.0,
        "total_profit": 2500.0,
        "profit_margin": 0.25,
        "health_score": 72,
        "growth_rate": 0.1,
    }


def test_prompt_includes_metrics(make_metrics):
    """Test the prompt renders the numbers and the JSON contract"""
    prompt = format_metrics_for_prompt(make_metrics(profit_margin=0.25, top3_share=0.8, anomaly_count=3))

    assert "Total Revenue: $10000.00" in prompt
    assert "Profit Margin: 25.0%" in prompt
    assert "Top 3 Products Share: 80.0%" in prompt
    assert "Anomalies Detected: 3" in prompt
    assert '"executiveSummary"' in prompt


async def test_synthesize_without_source_uses_rules(make_metrics):
    """Test no primary source goes straight to the rule set"""
    result = await synthesize_insights(make_metrics(health_score=90))

    assert result.source == "rule_based"
    assert result.insights[0].title == "Excellent Business Health"


async def test_synthesize_falls_back_once_on_failure(make_metrics):
    """Test a failing primary is tried once, then rules are used"""
    source = FailingSource()
    metrics = make_metrics(profit_margin=0.1)

    result = await synthesize_insights(metrics, source)

    assert source.calls == 1
    assert result.source == "rule_based"
    assert result.insights == generate_fallback_insights(metrics).insights


async def test_synthesize_prefers_primary(make_metrics):
    """Test a working primary source's result is returned as-is"""
    result = await synthesize_insights(make_metrics(), CannedSource())

    assert result.source == "llm"
    assert result.executive_summary == "Canned summary."


async def test_rule_based_source(make_metrics):
    """Test the rule set satisfies the source interface"""
    metrics = make_metrics(anomaly_count=9)

    result = await RuleBasedInsightSource().generate(metrics)

    assert result.source == "rule_based"
    assert result.insights[0].title == "Revenue Volatility Detected"


class BrokenSource:
    """Primary source failing with an error the client does not map"""

    async def generate(self, metrics: MetricsForInsight) -> InsightEngineResult:
        raise RuntimeError("invalid URL 'not a url'")


async def test_synthesize_falls_back_on_unexpected_error(make_metrics):
    """Test any primary failure, not only generation errors, degrades to rules"""
    metrics = make_metrics(health_score=20)

    result = await synthesize_insights(metrics, BrokenSource())

    assert result.source == "rule_based"
    assert result.insights == generate_fallback_insights(metrics).insights
