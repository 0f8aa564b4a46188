"""Pydantic models for day metrics, sample writes and access status."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from healthday.models.base import HealthDayBase


class DayMetricsRead(HealthDayBase):
    reference: datetime
    window_end: datetime
    step_count: float = Field(ge=0)
    hours_slept: float = Field(ge=0)
    heart_rate: float = Field(ge=0)
    hrv: float = Field(ge=0)
    lines: list[str] = Field(default_factory=list)


class SamplesWrittenRead(HealthDayBase):
    reference: datetime
    samples: int
    status: str = "written"


class AccessRead(HealthDayBase):
    authorized: bool
    detail: str | None = None
