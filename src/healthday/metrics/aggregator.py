"""Metric aggregator - reduce one day of store samples to four scalars.

For a reference instant the aggregator builds the window
``[reference, reference + 24h)`` once, issues one query per metric against
the store concurrently, and joins the four results into an AggregateResult.

Reduction rules:
    steps       - sum of the cumulative-sum query
    sleep       - total ASLEEP interval duration, in hours
    heart rate  - arithmetic mean of the readings
    HRV         - arithmetic mean of the readings (ms)

A StoreError on one metric degrades only that metric to 0.  Absent data is
a valid report, not an error.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from healthday.metrics.base import (
    AggregateResult,
    HealthStore,
    IntervalSample,
    QuantitySample,
    Sample,
    SampleType,
    SleepState,
    StoreError,
    TimeWindow,
)

logger = logging.getLogger("healthday.metrics.aggregator")

_SECONDS_PER_HOUR = 3600.0


# ---------------------------------------------------------------------------
# Reductions (pure)
# ---------------------------------------------------------------------------


def reduce_sum(total: float | None) -> float:
    """Cumulative sum, with no data reading as 0."""
    return float(total) if total is not None else 0.0


def reduce_sleep_hours(samples: list[Sample]) -> float:
    """Sum the durations of ASLEEP intervals and convert to hours.

    Intervals in any other state are ignored entirely.
    """
    total_seconds = sum(
        s.duration_seconds
        for s in samples
        if isinstance(s, IntervalSample) and s.state is SleepState.ASLEEP
    )
    return total_seconds / _SECONDS_PER_HOUR


def reduce_mean(samples: list[Sample]) -> float:
    """Arithmetic mean of quantity values; 0 when there are none."""
    values = [s.value for s in samples if isinstance(s, QuantitySample)]
    if not values:
        return 0.0
    return sum(values) / len(values)


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class MetricAggregator:
    """Aggregate the four daily metrics from a HealthStore.

    Stateless: every call re-queries the store, nothing is cached.

    Usage::

        aggregator = MetricAggregator(store)
        result = await aggregator.aggregate(datetime(2026, 2, 23))
        result.step_count   # 10000.0
    """

    def __init__(self, store: HealthStore, max_concurrent: int = 4) -> None:
        """Initialize the aggregator.

        Args:
            store:          The store to query.
            max_concurrent: Maximum number of simultaneous store queries.
        """
        self._store = store
        self._max_concurrent = max_concurrent

    async def aggregate(self, reference: datetime) -> AggregateResult:
        """Compute the AggregateResult for ``[reference, reference + 24h)``.

        All four queries are dispatched together and joined; a failure in
        one never cancels or fails the others.

        Args:
            reference: Start of the day window.

        Returns:
            AggregateResult with one scalar per metric.
        """
        window = TimeWindow.for_day(reference)
        semaphore = asyncio.Semaphore(self._max_concurrent)

        steps, hours, heart_rate, hrv = await asyncio.gather(
            self._bounded(semaphore, self._steps, window),
            self._bounded(semaphore, self._sleep_hours, window),
            self._bounded(semaphore, self._heart_rate, window),
            self._bounded(semaphore, self._hrv, window),
        )

        result = AggregateResult(
            step_count=steps,
            hours_slept=hours,
            heart_rate=heart_rate,
            hrv=hrv,
        )
        logger.info(
            "Aggregated %s: steps=%.0f sleep=%.2fh hr=%.1f hrv=%.1f",
            window.start.isoformat(), steps, hours, heart_rate, hrv,
        )
        return result

    # ------------------------------------------------------------------
    # Per-metric entry points
    # ------------------------------------------------------------------

    async def fetch_steps(self, reference: datetime) -> float:
        return await self._steps(TimeWindow.for_day(reference))

    async def fetch_sleep_hours(self, reference: datetime) -> float:
        return await self._sleep_hours(TimeWindow.for_day(reference))

    async def fetch_heart_rate(self, reference: datetime) -> float:
        return await self._heart_rate(TimeWindow.for_day(reference))

    async def fetch_hrv(self, reference: datetime) -> float:
        return await self._hrv(TimeWindow.for_day(reference))

    # ------------------------------------------------------------------
    # Sub-operations
    # ------------------------------------------------------------------

    @staticmethod
    async def _bounded(
        semaphore: asyncio.Semaphore,
        operation: Callable[[TimeWindow], Awaitable[float]],
        window: TimeWindow,
    ) -> float:
        async with semaphore:
            return await operation(window)

    async def _steps(self, window: TimeWindow) -> float:
        try:
            total = await self._store.query_cumulative_sum(SampleType.STEP_COUNT, window)
        except StoreError as exc:
            return self._degraded(SampleType.STEP_COUNT, exc)
        return reduce_sum(total)

    async def _sleep_hours(self, window: TimeWindow) -> float:
        return reduce_sleep_hours(await self._query(SampleType.SLEEP, window))

    async def _heart_rate(self, window: TimeWindow) -> float:
        return reduce_mean(await self._query(SampleType.HEART_RATE, window))

    async def _hrv(self, window: TimeWindow) -> float:
        return reduce_mean(await self._query(SampleType.HRV, window))

    async def _query(self, sample_type: SampleType, window: TimeWindow) -> list[Sample]:
        """List query that maps a StoreError to "no samples"."""
        try:
            samples = await self._store.query_samples(sample_type, window)
        except StoreError as exc:
            self._degraded(sample_type, exc)
            return []
        logger.debug("Queried %d %s samples", len(samples), sample_type.value)
        return samples

    @staticmethod
    def _degraded(sample_type: SampleType, exc: StoreError) -> float:
        logger.warning(
            "Query for %s failed, reporting 0: %s", sample_type.value, exc
        )
        return 0.0
