from __future__ import annotations

import json
import logging
from typing import Any, Protocol

RECORD_LOGGER = "kube_stats"


class RecordSink(Protocol):
    def emit(self, line: str) -> None:
        raise NotImplementedError


class LogSink:
    """Writes each record line through the `kube_stats` logger at INFO."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(RECORD_LOGGER)

    def emit(self, line: str) -> None:
        self._logger.info("%s", line)


def to_line(record: dict[str, Any]) -> str:
    return json.dumps({"kube": record}, ensure_ascii=True, separators=(",", ":"), allow_nan=False)
