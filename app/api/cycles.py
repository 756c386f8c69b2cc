from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.core.dependencies import get_aggregator
from app.schemas.cycle import CycleReport
from app.services.aggregator import CycleResult, MetricsAggregator

router = APIRouter()


@router.get("/cycles/last", response_model=CycleReport)
def last_cycle(
    aggregator: MetricsAggregator = Depends(get_aggregator),  # noqa: B008
) -> CycleReport:
    result = aggregator.last_result
    if result is None:
        raise HTTPException(status_code=404, detail="no metrics cycle has run yet")
    return _to_report(result)


def _to_report(result: CycleResult) -> CycleReport:
    if result.error is not None:
        status = "failed"
    elif result.finished_at is None:
        status = "running"
    else:
        status = "ok"
    return CycleReport(
        status=status,
        started_at=result.started_at,
        finished_at=result.finished_at,
        pods_scanned=result.pods_scanned,
        pods_skipped=result.pods_skipped,
        pod_records=result.pod_records,
        nodes_scanned=result.nodes_scanned,
        node_records=result.node_records,
        serialization_failures=result.serialization_failures,
        error=result.error,
    )
