from __future__ import annotations

import logging
from collections.abc import Iterable

from app.services.sink import RECORD_LOGGER

PROBE_PATHS = ("/healthz", "/ping")


class _ProbeAccessFilter(logging.Filter):
    """Drops uvicorn access lines for liveness/readiness probes."""

    def __init__(self, paths: Iterable[str]) -> None:
        super().__init__()
        self._paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        # uvicorn.access args: (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            return str(args[2]).split("?", 1)[0] not in self._paths
        return True


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("uvicorn.access").addFilter(_ProbeAccessFilter(PROBE_PATHS))

    # record lines go out bare so the pipeline can parse them as JSON
    record_handler = logging.StreamHandler()
    record_handler.setFormatter(logging.Formatter("%(message)s"))
    record_logger = logging.getLogger(RECORD_LOGGER)
    record_logger.handlers = [record_handler]
    record_logger.setLevel(logging.INFO)
    record_logger.propagate = False
