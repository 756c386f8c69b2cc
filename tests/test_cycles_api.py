from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from app.api.cycles import last_cycle
from app.services.aggregator import CycleResult, MetricsAggregator

STARTED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _aggregator(result: CycleResult | None) -> MetricsAggregator:
    aggregator = MetricsAggregator.__new__(MetricsAggregator)
    aggregator.last_result = result
    return aggregator


def test_last_cycle_reports_success() -> None:
    result = CycleResult(
        started_at=STARTED,
        finished_at=STARTED,
        pods_scanned=4,
        pods_skipped=1,
        pod_records=6,
        nodes_scanned=2,
        node_records=2,
    )

    report = last_cycle(aggregator=_aggregator(result))

    assert report.status == "ok"
    assert report.pod_records == 6
    assert report.node_records == 2
    assert report.error is None


def test_last_cycle_reports_failure() -> None:
    result = CycleResult(started_at=STARTED, finished_at=STARTED, error="fetch failed: boom")

    report = last_cycle(aggregator=_aggregator(result))

    assert report.status == "failed"
    assert report.error == "fetch failed: boom"


def test_last_cycle_reports_in_progress() -> None:
    report = last_cycle(aggregator=_aggregator(CycleResult(started_at=STARTED)))

    assert report.status == "running"


def test_last_cycle_missing_returns_404() -> None:
    with pytest.raises(HTTPException) as exc_info:
        last_cycle(aggregator=_aggregator(None))

    assert exc_info.value.status_code == 404
