from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.dashboard import build_default_dashboard


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    dashboard = build_default_dashboard()
    dashboard.start()
    try:
        yield
    finally:
        await dashboard.shutdown()
        build_default_dashboard.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="AirSense Aggregator",
        description="Air-quality readings, forecasts and advisories aggregated from multiple providers.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
