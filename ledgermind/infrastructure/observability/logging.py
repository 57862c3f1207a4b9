"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from ledgermind.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_analysis(
    request_id: str,
    transaction_count: int,
    total_days: int,
    health_score: int,
    anomaly_count: int,
    forecast_trend: str,
    duration_ms: float,
) -> None:
    """Log structured analysis outcome"""
    logging.info(
        "Analysis completed",
        extra={
            "request_id": request_id,
            "step": "analysis_complete",
            "transaction_count": transaction_count,
            "total_days": total_days,
            "health_score": health_score,
            "anomaly_count": anomaly_count,
            "forecast_trend": forecast_trend,
            "duration_ms": duration_ms,
        },
    )


def log_insights(request_id: str, source: str, insight_count: int, duration_ms: float) -> None:
    """Log which insight source answered and how long it took"""
    logging.info(
        "Insights completed",
        extra={
            "request_id": request_id,
            "step": "insights_complete",
            "insight_source": source,
            "insight_count": insight_count,
            "duration_ms": duration_ms,
        },
    )
