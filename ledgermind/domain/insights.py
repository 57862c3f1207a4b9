"""Insight synthesis - turns computed metrics into prioritized business findings"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
from ledgermind.domain.models import MetricsForInsight, BusinessInsight, InsightEngineResult
from ledgermind.domain.exceptions import InsightGenerationError

MAX_INSIGHTS = 6

CONCENTRATION_RISK_SHARE = 0.70
THIN_MARGIN = 0.15
STRONG_MARGIN = 0.30
VOLATILE_ANOMALY_COUNT = 5
EXCELLENT_HEALTH = 80
POOR_HEALTH = 50


class InsightSource(Protocol):
    """Anything that can turn metrics into an InsightEngineResult"""

    async def generate(self, metrics: MetricsForInsight) -> InsightEngineResult:
        ...


def build_key_metrics(metrics: MetricsForInsight) -> Dict[str, float]:
    return {
        "total_revenue": metrics.total_revenue,
        "total_profit": metrics.total_profit,
        "profit_margin": metrics.profit_margin,
        "health_score": metrics.health_score,
        "growth_rate": metrics.trend_analysis.growth_rate,
    }


def format_metrics_for_prompt(metrics: MetricsForInsight) -> str:
    """Render metrics into the text-generation prompt, including the strict JSON reply contract"""
    concentration = metrics.revenue_concentration
    trend = metrics.trend_analysis

    return f"""You are a senior business analyst reviewing financial data for a small business. Based on the following metrics, provide actionable insights:

## Key Metrics
- Total Revenue: ${metrics.total_revenue:.2f}
- Total Profit: ${metrics.total_profit:.2f}
- Profit Margin: {metrics.profit_margin * 100:.1f}%
- Business Health Score: {metrics.health_score}/100

## Revenue Concentration
- Top Product Share: {concentration.top_product_share * 100:.1f}%
- Top 3 Products Share: {concentration.top3_product_share * 100:.1f}%

## Trend Analysis
- Recent Trend: {trend.recent_trend}
- Growth Rate: {trend.growth_rate * 100:.1f}%

## Anomaly Detection
- Anomalies Detected: {metrics.anomaly_count}

## Forecast
- Forecast Trend: {metrics.forecast_trend}

## Instructions
Generate 4-6 business insights based on this data. Respond with EXACTLY this JSON structure and no other text:

{{
  "insights": [
    {{
      "category": "revenue" | "profitability" | "risk" | "opportunity" | "warning" | "general",
      "priority": "high" | "medium" | "low",
      "title": "Brief title (max 8 words)",
      "description": "What the data shows (1-2 sentences)",
      "impact": "Potential business impact (1 sentence)",
      "recommendation": "Specific action to take (1-2 sentences)"
    }}
  ],
  "executiveSummary": "A 2-3 sentence executive summary of the overall business health and key priorities"
}}

Focus on:
1. Revenue concentration risk (if top 3 products > 70%)
2. Margin health (flag if < 20%)
3. Growth trajectory concerns or opportunities
4. Anomaly patterns that need attention
5. Forecast implications

Be specific and actionable. Avoid generic advice. Use exact numbers from the metrics."""


def _rule_insights(metrics: MetricsForInsight) -> List[BusinessInsight]:
    insights: List[BusinessInsight] = []
    margin_pct = metrics.profit_margin * 100
    growth_pct = metrics.trend_analysis.growth_rate * 100

    # Revenue concentration
    if metrics.revenue_concentration.top3_product_share > CONCENTRATION_RISK_SHARE:
        insights.append(
            BusinessInsight(
                category="risk",
                priority="high",
                title="High Revenue Concentration Risk",
                description=(
                    f"Your top 3 products account for {metrics.revenue_concentration.top3_product_share * 100:.1f}% "
                    "of total revenue, creating dependency risk."
                ),
                impact="Loss of any top product could severely impact overall business revenue.",
                recommendation="Diversify product portfolio and develop new revenue streams to reduce concentration risk.",
            )
        )

    # Margins: [15%, 30%] is unremarkable
    if metrics.profit_margin < THIN_MARGIN:
        insights.append(
            BusinessInsight(
                category="warning",
                priority="high",
                title="Low Profit Margin Alert",
                description=f"Current profit margin of {margin_pct:.1f}% is below healthy threshold of 15%.",
                impact="Thin margins leave little buffer for unexpected costs or market changes.",
                recommendation="Review pricing strategy, negotiate better supplier terms, or reduce operational costs.",
            )
        )
    elif metrics.profit_margin > STRONG_MARGIN:
        insights.append(
            BusinessInsight(
                category="profitability",
                priority="medium",
                title="Strong Profit Margins",
                description=f"Excellent profit margin of {margin_pct:.1f}% indicates efficient operations.",
                impact="Strong margins provide financial cushion and growth capital.",
                recommendation="Maintain current efficiency while exploring reinvestment opportunities for growth.",
            )
        )

    # Trend
    if metrics.trend_analysis.recent_trend == "up":
        insights.append(
            BusinessInsight(
                category="opportunity",
                priority="medium",
                title="Positive Growth Trajectory",
                description=f"Revenue growing at {growth_pct:.1f}% with upward trend.",
                impact="Growth momentum creates opportunities for expansion and market share.",
                recommendation="Capitalize on growth by increasing inventory, hiring capacity, or expanding marketing.",
            )
        )
    elif metrics.trend_analysis.recent_trend == "down":
        insights.append(
            BusinessInsight(
                category="warning",
                priority="high",
                title="Declining Revenue Trend",
                description=f"Revenue declining at {abs(growth_pct):.1f}% with downward trend.",
                impact="Continued decline could threaten business sustainability.",
                recommendation=(
                    "Investigate root causes: market conditions, competition, product quality, "
                    "or customer satisfaction."
                ),
            )
        )

    # Volatility: 1-5 anomalies is unremarkable
    if metrics.anomaly_count > VOLATILE_ANOMALY_COUNT:
        insights.append(
            BusinessInsight(
                category="risk",
                priority="medium",
                title="Revenue Volatility Detected",
                description=f"{metrics.anomaly_count} revenue anomalies detected, indicating unstable patterns.",
                impact="High volatility makes forecasting and planning difficult.",
                recommendation=(
                    "Stabilize revenue streams through consistent marketing, pricing, and customer retention efforts."
                ),
            )
        )
    elif metrics.anomaly_count == 0:
        insights.append(
            BusinessInsight(
                category="profitability",
                priority="low",
                title="Stable Revenue Patterns",
                description="No significant anomalies detected, indicating stable operations.",
                impact="Predictable revenue enables confident business planning.",
                recommendation="Maintain operational consistency while exploring controlled growth initiatives.",
            )
        )

    # Overall health: [50, 80) is unremarkable
    if metrics.health_score >= EXCELLENT_HEALTH:
        insights.append(
            BusinessInsight(
                category="opportunity",
                priority="low",
                title="Excellent Business Health",
                description=f"Health score of {metrics.health_score}/100 indicates strong overall performance.",
                impact="Strong position enables strategic investments and expansion.",
                recommendation="Focus on sustainable growth and market leadership opportunities.",
            )
        )
    elif metrics.health_score < POOR_HEALTH:
        insights.append(
            BusinessInsight(
                category="warning",
                priority="high",
                title="Business Health Concerns",
                description=f"Health score of {metrics.health_score}/100 requires immediate attention.",
                impact="Low health score indicates multiple risk factors need addressing.",
                recommendation="Prioritize profitability improvement, cost reduction, and revenue stabilization.",
            )
        )

    return insights


def build_executive_summary(metrics: MetricsForInsight, insights: List[BusinessInsight]) -> str:
    if metrics.health_score >= 70:
        opening = (
            f"Business is performing well with {metrics.profit_margin * 100:.1f}% profit margin "
            f"and {metrics.trend_analysis.recent_trend} revenue trend. "
        )
    elif metrics.health_score >= 50:
        opening = "Business shows moderate health with room for improvement. "
    else:
        opening = "Business requires urgent attention across multiple areas. "

    priorities = ", ".join(i.title.lower() for i in insights if i.priority == "high")
    return f"{opening}Key priorities: {priorities}."


def generate_fallback_insights(metrics: MetricsForInsight) -> InsightEngineResult:
    """
    Deterministic rule set used whenever text generation is unavailable.

    Identical metrics always produce identical insights and summary.
    """
    insights = _rule_insights(metrics)

    return InsightEngineResult(
        insights=insights[:MAX_INSIGHTS],
        executive_summary=build_executive_summary(metrics, insights),
        key_metrics=build_key_metrics(metrics),
        generated_at=datetime.now(timezone.utc),
        source="rule_based",
    )


class RuleBasedInsightSource:
    """InsightSource backed by the deterministic rule set"""

    async def generate(self, metrics: MetricsForInsight) -> InsightEngineResult:
        return generate_fallback_insights(metrics)


async def synthesize_insights(
    metrics: MetricsForInsight,
    source: Optional[InsightSource] = None,
) -> InsightEngineResult:
    """
    Main entry point: try the primary source once, fall back to rules on failure.

    No retry. Without a primary source the rule set is used directly. Any
    failure of the primary source, mapped or not, degrades to the rule set.
    """
    if source is None:
        return generate_fallback_insights(metrics)

    try:
        return await source.generate(metrics)
    except InsightGenerationError as e:
        logging.warning(f"Insight generation failed, using rule-based fallback: {e}")
    except Exception as e:
        logging.error(f"Unexpected insight source error, using rule-based fallback: {e!r}")

    return generate_fallback_insights(metrics)
