from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import cycles, health
from app.core.dependencies import get_aggregator, get_k8s_client, get_settings
from app.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting kube-stats-collector on port %s", settings.port)
    stop_event = threading.Event()
    worker: threading.Thread | None = None
    if not settings.collector_enabled:
        logger.info("Metrics collection disabled by COLLECTOR_ENABLED")
    elif not get_k8s_client().configured:
        logger.warning("Kubernetes client is not configured; metrics collection disabled")
    else:
        worker = threading.Thread(
            target=get_aggregator().run_forever,
            args=(stop_event,),
            name="metrics-aggregator",
            daemon=True,
        )
        worker.start()
    yield
    stop_event.set()
    if worker is not None:
        worker.join(timeout=5)


app = FastAPI(title="kube-stats-collector", version="1.0.0", lifespan=lifespan)
app.include_router(health.router)
app.include_router(cycles.router)
