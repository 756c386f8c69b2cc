from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class CycleReport(BaseModel):
    status: str
    started_at: datetime
    finished_at: datetime | None = None
    pods_scanned: int = 0
    pods_skipped: int = 0
    pod_records: int = 0
    nodes_scanned: int = 0
    node_records: int = 0
    serialization_failures: int = 0
    error: str | None = None
