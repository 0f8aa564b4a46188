"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from healthday.dependencies import AppSettings, Session

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(session: Session, settings: AppSettings) -> dict:
    """Liveness probe.  Reports the store backend and whether access was granted."""
    return {
        "status": "healthy" if session.authorized else "degraded",
        "version": settings.app_version,
        "store": session.store.STORE_ID,
        "access": "granted" if session.authorized else "denied",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
