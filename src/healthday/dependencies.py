"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from healthday.config import Settings, get_settings
from healthday.metrics.base import HealthStore
from healthday.metrics.config_loader import (
    HealthDayConfig,
    get_healthday_config,
    load_healthday_config,
)
from healthday.metrics.session import HealthSession
from healthday.metrics.stores import AppleHealthExportStore, get_store


def build_store(settings: Settings) -> HealthStore:
    """Instantiate the store backend selected in settings.

    Raises:
        KeyError:   If the backend slug is not registered.
        ValueError: If the export backend has no export path.
    """
    store_cls = get_store(settings.store_backend)
    if store_cls is AppleHealthExportStore:
        if not settings.export_path:
            raise ValueError("HEALTHDAY_EXPORT_PATH is required for apple_health_export")
        return AppleHealthExportStore.from_path(settings.export_path)
    return store_cls()


def build_config(settings: Settings) -> HealthDayConfig:
    if settings.config_path:
        return load_healthday_config(Path(settings.config_path))
    return get_healthday_config()


async def get_session(request: Request) -> HealthSession:
    """Return the session created at startup."""
    session: HealthSession | None = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Health store not initialised")
    return session


# Annotated shortcuts for route signatures
Session = Annotated[HealthSession, Depends(get_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]
