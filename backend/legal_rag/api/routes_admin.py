"""Administrative routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from legal_rag.api.dependencies import ServiceContainer, get_container
from legal_rag.core.metrics import metrics_response
from legal_rag.models.dto import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
def health(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    return HealthResponse(ok=True, full_text_available=container.db.full_text_available)


@router.get("/metrics", summary="Prometheus metrics")
def get_metrics():
    return metrics_response()


__all__ = ["router"]
