"""Prometheus metrics for monitoring analysis outcomes, insight sources, and text generation performance"""

from typing import List
from prometheus_client import Counter, Histogram
from ledgermind.domain.models import Anomaly

# Analysis metrics
analysis_counter = Counter(
    "ledgermind_analysis_total",
    "Total analyses computed",
)

health_score_histogram = Histogram(
    "ledgermind_health_score",
    "Distribution of computed business health scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

anomaly_counter = Counter(
    "ledgermind_anomalies_total",
    "Revenue anomalies flagged",
    ["severity", "type"],  # high | medium | low, spike | drop
)

# Insight metrics
insight_source_counter = Counter(
    "ledgermind_insight_results_total",
    "Insight results by the source that produced them",
    ["source"],  # llm | rule_based
)

text_generation_latency_histogram = Histogram(
    "text_generation_latency_seconds",
    "Text generation API response time",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0],
)

text_generation_failure_counter = Counter(
    "text_generation_failures_total",
    "Failed text generation calls",
    ["reason"],  # timeout | http_status | transport | malformed_response
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_analysis(health_score: int, anomalies: List[Anomaly]) -> None:
    """Record analysis metrics for monitoring score distribution and anomaly volume"""
    analysis_counter.inc()
    health_score_histogram.observe(health_score)

    for anomaly in anomalies:
        anomaly_counter.labels(severity=anomaly.severity, type=anomaly.type).inc()


def record_insight_source(source: str) -> None:
    insight_source_counter.labels(source=source).inc()
