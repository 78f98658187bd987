"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - itinerary_generation_total{outcome}
    - itinerary_generation_latency_ms{outcome}
    - plan_persistence_errors_total{operation, kind}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
