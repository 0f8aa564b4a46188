"""healthday API - FastAPI application entry point.

Run locally:
    uvicorn healthday.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from healthday.config import get_settings
from healthday.dependencies import build_config, build_store
from healthday.metrics.base import AuthError
from healthday.metrics.session import HealthSession
from healthday.routers import days, health

logger = logging.getLogger("healthday")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks.

    Builds the store and session, then requests access once.  A refused
    request is logged and reported via /health; it does not stop the app.
    """
    settings = get_settings()
    logger.info("Starting healthday API v%s [store=%s]", settings.app_version, settings.store_backend)
    session = HealthSession(build_store(settings), build_config(settings))
    try:
        await session.request_access()
    except AuthError as exc:
        logger.warning("Starting without store access: %s", exc)
    app.state.session = session
    yield
    logger.info("healthday API shut down")


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="healthday API",
        description="Single-day step, sleep, heart rate and HRV aggregation.",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(days.router, prefix="/api/v1")

    return app


app = create_app()
