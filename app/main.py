from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from app.web import router as web_router
from datastore.measurement_store import build_default_store
from logging_config import configure_logging
from services.chart import build_default_transformer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    store = build_default_store()
    logger.info(
        "Measurement store ready",
        extra={"group": store.group, "path": str(store.persistence_path or "memory")},
    )
    try:
        yield
    finally:
        build_default_store.cache_clear()
        build_default_transformer.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Measurement Log",
        description="Ingests temperature and humidity readings and charts them over time.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
