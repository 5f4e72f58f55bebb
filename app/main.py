from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from app.errors import register_exception_handlers
from app.realtime import router as realtime_router
from logging_config import configure_logging
from realtime.broadcaster import build_default_broadcaster
from services.retention import RetentionPruner
from services.sensor_service import build_default_service
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    service = build_default_service()
    pruner = RetentionPruner(
        store=service.store,
        retention=timedelta(days=settings.retention_days),
        interval_seconds=settings.prune_interval_seconds,
    )
    pruner.start()
    logger.info("Sensor backend started (store=%s)", type(service.store).__name__)
    try:
        yield
    finally:
        pruner.stop()
        service.store.close()
        build_default_service.cache_clear()
        build_default_broadcaster.cache_clear()


async def _log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    return response


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="Traffic Sensor Backend",
        description="Ingestion and analytics for the four-channel distance sensor array.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.middleware("http")(_log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)
    app.include_router(realtime_router)
    return app

app = create_app()
