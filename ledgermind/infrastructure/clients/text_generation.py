"""Text generation HTTP client and the LLM-backed insight source"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List

import httpx

from ledgermind.config import settings
from ledgermind.domain.exceptions import InsightGenerationError
from ledgermind.domain.insights import MAX_INSIGHTS, build_key_metrics, format_metrics_for_prompt
from ledgermind.domain.models import BusinessInsight, InsightEngineResult, MetricsForInsight
from ledgermind.infrastructure.observability.metrics import (
    text_generation_failure_counter,
    text_generation_latency_histogram,
)

INSIGHT_CATEGORIES = {"revenue", "profitability", "risk", "opportunity", "warning", "general"}
INSIGHT_PRIORITIES = {"high", "medium", "low"}


class TextGenerationClient:
    """Client for the external text generation (messages) API"""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url or settings.insight_api_url
        self.api_key = api_key if api_key is not None else settings.insight_api_key
        self.model = model or settings.insight_model
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def complete(self, prompt: str) -> str:
        """
        Send a single-turn prompt and return the first text block of the reply.

        One attempt only; the caller decides what to do on failure.

        Raises:
            InsightGenerationError: On timeout, transport errors, HTTP errors, or an unexpected body
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with text_generation_latency_histogram.time():
                    response = await client.post(
                        self.api_url,
                        headers={
                            "x-api-key": self.api_key,
                            "anthropic-version": settings.anthropic_version,
                            "content-type": "application/json",
                        },
                        json={
                            "model": self.model,
                            "max_tokens": settings.insight_max_tokens,
                            "messages": [{"role": "user", "content": prompt}],
                        },
                    )
                    response.raise_for_status()
                    data = response.json()

                return data["content"][0]["text"]

            except httpx.TimeoutException as e:
                text_generation_failure_counter.labels(reason="timeout").inc()
                raise InsightGenerationError(f"Text generation timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                text_generation_failure_counter.labels(reason="http_status").inc()
                raise InsightGenerationError(f"Text generation API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                text_generation_failure_counter.labels(reason="transport").inc()
                raise InsightGenerationError(f"Text generation request failed: {e}") from e
            except (KeyError, IndexError, ValueError, TypeError) as e:
                text_generation_failure_counter.labels(reason="malformed_response").inc()
                raise InsightGenerationError(f"Invalid response from text generation API: {e}") from e


def parse_insight_payload(text: str) -> tuple[List[BusinessInsight], str]:
    """
    Parse the model's strict-JSON reply into insights and an executive summary.

    Unknown categories become "general"; anything else malformed raises.
    """
    try:
        payload: Dict[str, Any] = json.loads(text)
        insights = []
        for item in payload["insights"]:
            priority = item["priority"]
            if priority not in INSIGHT_PRIORITIES:
                raise ValueError(f"unknown priority {priority!r}")
            category = item["category"] if item["category"] in INSIGHT_CATEGORIES else "general"
            insights.append(
                BusinessInsight(
                    category=category,
                    priority=priority,
                    title=str(item["title"]),
                    description=str(item["description"]),
                    impact=str(item["impact"]),
                    recommendation=str(item["recommendation"]),
                )
            )
        summary = payload["executiveSummary"]
        if not isinstance(summary, str):
            raise TypeError("executiveSummary must be a string")
    except (KeyError, ValueError, TypeError) as e:
        text_generation_failure_counter.labels(reason="malformed_response").inc()
        raise InsightGenerationError(f"Malformed insight JSON: {e}") from e

    return insights, summary


class LLMInsightSource:
    """InsightSource backed by the text generation API"""

    def __init__(self, client: TextGenerationClient | None = None):
        self.client = client or TextGenerationClient()

    async def generate(self, metrics: MetricsForInsight) -> InsightEngineResult:
        text = await self.client.complete(format_metrics_for_prompt(metrics))
        insights, summary = parse_insight_payload(text)

        return InsightEngineResult(
            insights=insights[:MAX_INSIGHTS],
            executive_summary=summary,
            key_metrics=build_key_metrics(metrics),
            generated_at=datetime.now(timezone.utc),
            source="llm",
        )
