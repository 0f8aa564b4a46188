"""Day endpoints: access, fixture writes, and per-day metric aggregation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException

from healthday.dependencies import Session
from healthday.metrics.base import AuthError, TimeWindow, WriteError
from healthday.metrics.writer import build_fixture_samples
from healthday.models.base import ErrorDetail
from healthday.models.metrics import AccessRead, DayMetricsRead, SamplesWrittenRead

router = APIRouter(tags=["days"])
logger = logging.getLogger("healthday.routers.days")


def _naive_utc(value: datetime) -> datetime:
    """Convert tz-aware datetimes to naive UTC; naive ones are assumed UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@router.post(
    "/access",
    response_model=AccessRead,
    responses={403: {"model": ErrorDetail}},
)
async def request_access(session: Session) -> Any:
    try:
        await session.request_access()
    except AuthError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return AccessRead(authorized=True)


@router.get(
    "/days/{reference}/metrics",
    response_model=DayMetricsRead,
    responses={403: {"model": ErrorDetail}},
)
async def get_day_metrics(reference: datetime, session: Session) -> Any:
    reference = _naive_utc(reference)
    try:
        result = await session.fetch(reference)
    except AuthError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return DayMetricsRead(
        reference=reference,
        window_end=TimeWindow.for_day(reference).end,
        lines=session.format(result),
        **result.as_dict(),
    )


@router.post(
    "/days/{reference}/samples",
    response_model=SamplesWrittenRead,
    status_code=201,
    responses={403: {"model": ErrorDetail}, 502: {"model": ErrorDetail}},
)
async def write_day_samples(reference: datetime, session: Session) -> Any:
    reference = _naive_utc(reference)
    try:
        await session.write(reference)
    except AuthError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except WriteError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc
    return SamplesWrittenRead(
        reference=reference, samples=len(build_fixture_samples(reference))
    )
