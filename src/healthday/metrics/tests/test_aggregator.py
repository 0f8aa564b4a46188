"""Tests for the metric aggregator - reductions, windowing and degradation."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from healthday.metrics.aggregator import (
    MetricAggregator,
    reduce_mean,
    reduce_sleep_hours,
    reduce_sum,
)
from healthday.metrics.base import (
    AggregateResult,
    HealthStore,
    SampleType,
    SleepState,
    StoreError,
)
from healthday.metrics.stores.memory import InMemoryHealthStore
from healthday.metrics.tests.conftest import TEST_DATE, quantity, sleep


class TestReductions:
    """Unit tests for the pure reduction helpers."""

    def test_sum_none_is_zero(self) -> None:
        assert reduce_sum(None) == 0.0

    def test_sum_passes_total_through(self) -> None:
        assert reduce_sum(10000) == 10000.0

    def test_sleep_counts_only_asleep(self) -> None:
        samples = [sleep(8, 11), sleep(11, 12, SleepState.OTHER)]
        assert reduce_sleep_hours(samples) == 3.0

    def test_sleep_empty(self) -> None:
        assert reduce_sleep_hours([]) == 0.0

    def test_mean(self) -> None:
        samples = [quantity(SampleType.HEART_RATE, 60), quantity(SampleType.HEART_RATE, 80)]
        assert reduce_mean(samples) == pytest.approx(70.0)

    def test_mean_empty_is_zero_not_nan(self) -> None:
        assert reduce_mean([]) == 0.0


class TestAggregate:
    """End-to-end aggregation against the in-memory store."""

    @pytest.mark.asyncio
    async def test_empty_store_returns_zeros(self, memory_store: InMemoryHealthStore) -> None:
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result == AggregateResult(0.0, 0.0, 0.0, 0.0)

    @pytest.mark.asyncio
    async def test_step_sum(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(
            quantity(SampleType.STEP_COUNT, 3000, 9),
            quantity(SampleType.STEP_COUNT, 7000, 17),
        )
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.step_count == 10000.0

    @pytest.mark.asyncio
    async def test_sleep_ignores_other_intervals(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(sleep(8, 11), sleep(11, 12, SleepState.OTHER))
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.hours_slept == 3.0

    @pytest.mark.asyncio
    async def test_heart_rate_and_hrv_means(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(
            quantity(SampleType.HEART_RATE, 60, 1),
            quantity(SampleType.HEART_RATE, 80, 2),
            quantity(SampleType.HRV, 40, 3),
            quantity(SampleType.HRV, 60, 4),
        )
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.heart_rate == pytest.approx(70.0)
        assert result.hrv == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_window_is_half_open(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(
            quantity(SampleType.STEP_COUNT, 100, 0),     # exactly at reference: included
            quantity(SampleType.STEP_COUNT, 5000, 24),   # exactly at reference + 24h: excluded
            quantity(SampleType.STEP_COUNT, 7, -1),      # the day before: excluded
        )
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.step_count == 100.0

    @pytest.mark.asyncio
    async def test_sleep_starting_before_window_is_excluded(
        self, memory_store: InMemoryHealthStore
    ) -> None:
        memory_store.seed(sleep(-2, 6))
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.hours_slept == 0.0

    @pytest.mark.asyncio
    async def test_idempotent(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(quantity(SampleType.HRV, 42, 5), sleep(1, 2))
        aggregator = MetricAggregator(memory_store)
        first = await aggregator.aggregate(TEST_DATE)
        second = await aggregator.aggregate(TEST_DATE)
        assert first == second

    @pytest.mark.asyncio
    async def test_not_cached_between_calls(self, memory_store: InMemoryHealthStore) -> None:
        aggregator = MetricAggregator(memory_store)
        assert (await aggregator.aggregate(TEST_DATE)).heart_rate == 0.0
        memory_store.seed(quantity(SampleType.HEART_RATE, 65, 3))
        assert (await aggregator.aggregate(TEST_DATE)).heart_rate == 65.0

    @pytest.mark.asyncio
    async def test_per_metric_entry_points(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(
            quantity(SampleType.STEP_COUNT, 1234, 1),
            sleep(0, 1.5),
            quantity(SampleType.HEART_RATE, 55, 1),
            quantity(SampleType.HRV, 33, 1),
        )
        aggregator = MetricAggregator(memory_store)
        assert await aggregator.fetch_steps(TEST_DATE) == 1234.0
        assert await aggregator.fetch_sleep_hours(TEST_DATE) == 1.5
        assert await aggregator.fetch_heart_rate(TEST_DATE) == 55.0
        assert await aggregator.fetch_hrv(TEST_DATE) == 33.0

    @pytest.mark.asyncio
    async def test_single_concurrency_slot_still_completes(
        self, memory_store: InMemoryHealthStore
    ) -> None:
        memory_store.seed(quantity(SampleType.STEP_COUNT, 10, 1))
        result = await MetricAggregator(memory_store, max_concurrent=1).aggregate(TEST_DATE)
        assert result.step_count == 10.0


class TestDegradation:
    """One failing metric must not fail the whole aggregation."""

    @pytest.mark.asyncio
    async def test_heart_rate_failure_isolated(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(
            quantity(SampleType.STEP_COUNT, 8000, 10),
            sleep(1, 7),
            quantity(SampleType.HEART_RATE, 90, 2),
            quantity(SampleType.HRV, 45, 2),
        )
        memory_store.fail_queries(SampleType.HEART_RATE)
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.heart_rate == 0.0
        assert result.step_count == 8000.0
        assert result.hours_slept == 6.0
        assert result.hrv == 45.0

    @pytest.mark.asyncio
    async def test_step_failure_isolated(self, memory_store: InMemoryHealthStore) -> None:
        memory_store.seed(quantity(SampleType.HRV, 45, 2))
        memory_store.fail_queries(SampleType.STEP_COUNT)
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result.step_count == 0.0
        assert result.hrv == 45.0

    @pytest.mark.asyncio
    async def test_all_queries_fail(self, memory_store: InMemoryHealthStore) -> None:
        for sample_type in SampleType:
            memory_store.fail_queries(sample_type)
        result = await MetricAggregator(memory_store).aggregate(TEST_DATE)
        assert result == AggregateResult()

    @pytest.mark.asyncio
    async def test_unauthorized_reads_degrade_to_zero(
        self, unauthorized_store: InMemoryHealthStore
    ) -> None:
        unauthorized_store.seed(quantity(SampleType.STEP_COUNT, 500, 1))
        result = await MetricAggregator(unauthorized_store).aggregate(TEST_DATE)
        assert result.step_count == 0.0

    @pytest.mark.asyncio
    async def test_join_waits_for_every_query(self) -> None:
        """A fast failure does not short-circuit slower queries."""

        async def slow_samples(sample_type: SampleType, window) -> list:
            if sample_type is SampleType.HEART_RATE:
                raise StoreError("boom")
            await asyncio.sleep(0.01)
            return [quantity(SampleType.HRV, 50, 1)] if sample_type is SampleType.HRV else []

        store = AsyncMock(spec=HealthStore)
        store.query_samples.side_effect = slow_samples
        store.query_cumulative_sum.return_value = 42.0

        result = await MetricAggregator(store).aggregate(TEST_DATE)

        assert result == AggregateResult(step_count=42.0, hours_slept=0.0, heart_rate=0.0, hrv=50.0)
        assert store.query_samples.await_count == 3
        store.query_cumulative_sum.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self) -> None:
        store = AsyncMock(spec=HealthStore)
        store.query_samples.return_value = []
        store.query_cumulative_sum.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            await MetricAggregator(store).aggregate(TEST_DATE)
