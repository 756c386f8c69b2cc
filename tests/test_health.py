from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.api.health import healthz, ping, root
from app.core.logging import PROBE_PATHS, _ProbeAccessFilter
from app.services.aggregator import CycleResult, MetricsAggregator

STARTED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _aggregator(result: CycleResult | None) -> MetricsAggregator:
    aggregator = MetricsAggregator.__new__(MetricsAggregator)
    aggregator.last_result = result
    return aggregator


def _access_record(path: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='%s - "%s %s HTTP/%s" %d',
        args=("10.0.0.1:5000", "GET", path, "1.1", 200),
        exc_info=None,
    )


def test_ping() -> None:
    assert ping() == {"message": "pong"}


def test_root_reports_service_running() -> None:
    assert root() == {"status": "ok", "message": "kube-stats-collector is running"}


def test_healthz_ok_before_first_cycle() -> None:
    assert healthz(aggregator=_aggregator(None)) == {"status": "ok"}


def test_healthz_degraded_after_failed_cycle() -> None:
    result = CycleResult(started_at=STARTED, finished_at=STARTED, error="fetch failed: boom")

    assert healthz(aggregator=_aggregator(result)) == {
        "status": "degraded",
        "detail": "fetch failed: boom",
    }


def test_probe_filter_drops_probe_paths_only() -> None:
    access_filter = _ProbeAccessFilter(PROBE_PATHS)

    assert access_filter.filter(_access_record("/healthz")) is False
    assert access_filter.filter(_access_record("/ping?verbose=1")) is False
    assert access_filter.filter(_access_record("/cycles/last")) is True
