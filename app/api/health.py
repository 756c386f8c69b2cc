from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.dependencies import get_aggregator
from app.services.aggregator import MetricsAggregator

router = APIRouter()


@router.get("/ping")
def ping() -> dict[str, str]:
    return {"message": "pong"}


@router.get("/healthz")
def healthz(
    aggregator: MetricsAggregator = Depends(get_aggregator),  # noqa: B008
) -> dict[str, str]:
    result = aggregator.last_result
    if result is not None and result.error is not None:
        return {"status": "degraded", "detail": result.error}
    return {"status": "ok"}


@router.get("/")
def root() -> dict[str, str]:
    return {"status": "ok", "message": "kube-stats-collector is running"}
