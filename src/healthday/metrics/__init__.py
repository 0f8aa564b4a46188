"""healthday metrics engine.

Aggregates one day of physiological samples (steps, sleep, heart rate, HRV)
from a health-data store, and writes a fixed synthetic batch for testing.

Subpackages:
    stores/ - HealthStore backends (in-memory, Apple Health export)

Core modules:
    base          - Sample models, TimeWindow, AggregateResult, HealthStore ABC, errors
    aggregator    - Per-metric reduction over a 24h window
    writer        - Fixture batch writer
    session       - Access-gated write/fetch orchestration
    config_loader - Load/validate/hot-reload healthday_config.yaml
"""

from healthday.metrics.aggregator import MetricAggregator
from healthday.metrics.base import (
    AggregateResult,
    AuthError,
    HealthStore,
    IntervalSample,
    QuantitySample,
    SampleType,
    SleepState,
    StoreError,
    TimeWindow,
    WriteError,
)
from healthday.metrics.config_loader import HealthDayConfig, get_healthday_config
from healthday.metrics.session import HealthSession
from healthday.metrics.writer import SampleWriter

__all__ = [
    "AggregateResult",
    "AuthError",
    "HealthDayConfig",
    "HealthSession",
    "HealthStore",
    "IntervalSample",
    "MetricAggregator",
    "QuantitySample",
    "SampleType",
    "SampleWriter",
    "SleepState",
    "StoreError",
    "TimeWindow",
    "WriteError",
    "get_healthday_config",
]
