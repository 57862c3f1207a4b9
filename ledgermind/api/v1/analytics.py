"""POST /v1/analytics - Full analytics recompute from raw transactions"""

import time
import logging
from fastapi import APIRouter, HTTPException, Request

from ledgermind.api.v1.schemas import AnalysisRequest, AnalysisResponse, PeriodSchema
from ledgermind.api.dependencies import get_request_id
from ledgermind.config import settings
from ledgermind.domain.exceptions import NoTransactionsInRangeError
from ledgermind.domain.models import AnalysisReport
from ledgermind.domain.pipeline import filter_by_date_range, run_analysis
from ledgermind.infrastructure.observability.metrics import record_analysis
from ledgermind.infrastructure.observability.logging import log_analysis

router = APIRouter()


def analyze_request(request_body: AnalysisRequest, request_id: str) -> AnalysisReport:
    """
    Run the pipeline for a validated request and record metrics/logs.

    Raises:
        NoTransactionsInRangeError: If the date window leaves nothing to analyze
    """
    start_time = time.time()

    transactions = filter_by_date_range(
        [txn.to_domain() for txn in request_body.transactions],
        request_body.start_date,
        request_body.end_date,
    )
    if not transactions:
        raise NoTransactionsInRangeError(
            f"No transactions between {request_body.start_date or 'the beginning'} "
            f"and {request_body.end_date or 'the end'}"
        )

    report = run_analysis(
        transactions,
        forecast_days=request_body.forecast_days or settings.default_forecast_days,
        anomaly_threshold=request_body.anomaly_threshold or settings.default_anomaly_threshold,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_analysis(report.health.score, report.anomalies.anomalies)
    log_analysis(
        request_id,
        len(transactions),
        report.total_days,
        report.health.score,
        len(report.anomalies.anomalies),
        report.forecast.trend,
        duration_ms,
    )
    return report


def to_response(report: AnalysisReport) -> AnalysisResponse:
    return AnalysisResponse(
        period=PeriodSchema(start_date=report.start_date, end_date=report.end_date, total_days=report.total_days),
        analytics=report.analytics,
        health=report.health,
        concentration=report.concentration,
        forecast=report.forecast,
        anomalies=report.anomalies,
        anomaly_streaks=report.anomaly_streaks,
        anomaly_frequency=report.anomaly_frequency,
        metrics=report.metrics,
    )


@router.post("/analytics", response_model=AnalysisResponse)
def create_analysis(request_body: AnalysisRequest, request: Request):
    """
    Compute aggregates, health score, anomalies and forecast for a transaction list.

    Nothing is persisted; every call recomputes from the submitted records.
    """
    request_id = get_request_id(request)

    try:
        return to_response(analyze_request(request_body, request_id))

    except NoTransactionsInRangeError as e:
        logging.warning(f"Empty date window: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to compute analytics")
