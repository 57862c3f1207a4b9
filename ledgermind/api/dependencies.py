"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Request
from ledgermind.config import settings
from ledgermind.domain.insights import InsightSource
from ledgermind.infrastructure.clients.text_generation import LLMInsightSource


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_insight_source() -> Optional[InsightSource]:
    """Provide the primary insight source; None (rules only) when no API key is configured"""
    if not settings.insight_api_key:
        return None
    return LLMInsightSource()
