"""POST /v1/insights - Business insights from metrics or raw transactions"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from ledgermind.api.v1.schemas import AnalysisRequest, InsightsRequest, InsightsResponse
from ledgermind.api.v1.analytics import analyze_request
from ledgermind.api.dependencies import get_insight_source, get_request_id
from ledgermind.domain.exceptions import NoTransactionsInRangeError
from ledgermind.domain.insights import InsightSource, synthesize_insights
from ledgermind.domain.models import MetricsForInsight
from ledgermind.infrastructure.observability.metrics import record_insight_source
from ledgermind.infrastructure.observability.logging import log_insights

router = APIRouter()


async def _synthesize(metrics: MetricsForInsight, source: Optional[InsightSource], request_id: str) -> InsightsResponse:
    start_time = time.time()
    result = await synthesize_insights(metrics, source)

    duration_ms = (time.time() - start_time) * 1000
    record_insight_source(result.source)
    log_insights(request_id, result.source, len(result.insights), duration_ms)

    return InsightsResponse(insights=result, metrics=metrics)


@router.post("/insights", response_model=InsightsResponse)
async def create_insights(
    request_body: InsightsRequest,
    request: Request,
    source: Optional[InsightSource] = Depends(get_insight_source),
):
    """
    Generate insights from precomputed metrics.

    Text generation failures fall back to the deterministic rule set, so
    this only errors on unexpected failures.
    """
    request_id = get_request_id(request)

    try:
        return await _synthesize(request_body.metrics.to_domain(), source, request_id)

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to generate insights")


@router.post("/insights/analyze", response_model=InsightsResponse)
async def analyze_and_create_insights(
    request_body: AnalysisRequest,
    request: Request,
    source: Optional[InsightSource] = Depends(get_insight_source),
):
    """
    Run the full analysis for a transaction list, then generate insights from it.

    Flow:
    1. Restrict to the optional date window (404 if nothing is left)
    2. Aggregate, detect anomalies, score and forecast
    3. Collect metrics for insight synthesis
    4. Ask the primary insight source, falling back to rules on failure
    """
    request_id = get_request_id(request)

    try:
        # Pipeline is CPU-bound; keep it off the event loop
        report = await run_in_threadpool(analyze_request, request_body, request_id)
        return await _synthesize(report.metrics, source, request_id)

    except NoTransactionsInRangeError as e:
        logging.warning(f"Empty date window: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to generate insights")
