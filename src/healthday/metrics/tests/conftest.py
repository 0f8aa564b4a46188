"""Shared fixtures and sample builders for healthday metrics tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from healthday.metrics.base import (
    IntervalSample,
    QuantitySample,
    SampleType,
    SleepState,
)
from healthday.metrics.config_loader import HealthDayConfig, load_healthday_config
from healthday.metrics.stores.memory import InMemoryHealthStore

# Fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Canonical reference instant: start of the aggregation window
TEST_DATE = datetime(2026, 2, 23, 0, 0, 0)


# ---------------------------------------------------------------------------
# Sample builders
# ---------------------------------------------------------------------------


def at(hours: float) -> datetime:
    """Instant ``hours`` after TEST_DATE."""
    return TEST_DATE + timedelta(hours=hours)


def quantity(sample_type: SampleType, value: float, hours: float = 0.0) -> QuantitySample:
    return QuantitySample(sample_type, value, at(hours), at(hours))


def sleep(start_hours: float, end_hours: float, state: SleepState = SleepState.ASLEEP) -> IntervalSample:
    return IntervalSample(state, at(start_hours), at(end_hours))


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def healthday_config() -> HealthDayConfig:
    """Load the real bundled config for tests."""
    return load_healthday_config()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemoryHealthStore:
    """Empty in-memory store with all four types already authorized."""
    return InMemoryHealthStore(granted=SampleType)


@pytest.fixture
def unauthorized_store() -> InMemoryHealthStore:
    """Empty in-memory store on which nothing has been granted yet."""
    return InMemoryHealthStore()


@pytest.fixture
def export_xml() -> bytes:
    return (FIXTURES_DIR / "export.xml").read_bytes()
