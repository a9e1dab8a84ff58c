"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes retry_attempts_total, chat_requests_total, completion_latency_ms,
    moderation_transitions_total and emails_sent_total among others.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
