from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.bridge import build_default_bridge
from services.catalog import build_default_catalog
from services.snapshot import build_default_snapshot_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_snapshot_service()
    logger.info(
        "Sensor server ready",
        extra={"path": str(service.catalog.root_path), "command": service.bridge.command},
    )
    try:
        yield
    finally:
        build_default_snapshot_service.cache_clear()
        build_default_catalog.cache_clear()
        build_default_bridge.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Readings Server",
        description="Current 1-Wire and helper-provided sensor readings as JSON.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
