"""Tests for the access-gated health session."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from healthday.metrics.base import AuthError, HealthStore, SampleType, WriteError
from healthday.metrics.config_loader import HealthDayConfig
from healthday.metrics.session import HealthSession
from healthday.metrics.stores.memory import InMemoryHealthStore
from healthday.metrics.tests.conftest import TEST_DATE


class TestAccess:
    @pytest.mark.asyncio
    async def test_request_access_grants_all_types(
        self, unauthorized_store: InMemoryHealthStore, healthday_config: HealthDayConfig
    ) -> None:
        session = HealthSession(unauthorized_store, healthday_config)
        await session.request_access()
        assert session.authorized
        assert session.access_error is None

    @pytest.mark.asyncio
    async def test_denied_access_raises_and_is_recorded(
        self, healthday_config: HealthDayConfig
    ) -> None:
        store = InMemoryHealthStore(denied=[SampleType.HRV])
        session = HealthSession(store, healthday_config)
        with pytest.raises(AuthError, match="hrv"):
            await session.request_access()
        assert not session.authorized
        assert "hrv" in session.access_error

    @pytest.mark.asyncio
    async def test_fetch_before_access_never_queries_store(
        self, healthday_config: HealthDayConfig
    ) -> None:
        store = AsyncMock(spec=HealthStore)
        session = HealthSession(store, healthday_config)
        with pytest.raises(AuthError):
            await session.fetch(TEST_DATE)
        store.query_samples.assert_not_awaited()
        store.query_cumulative_sum.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_after_denied_access_never_writes(
        self, healthday_config: HealthDayConfig
    ) -> None:
        store = AsyncMock(spec=HealthStore)
        store.request_access.side_effect = AuthError("Access not granted for: sleep")
        session = HealthSession(store, healthday_config)
        with pytest.raises(AuthError):
            await session.request_access()
        with pytest.raises(AuthError, match="sleep"):
            await session.write(TEST_DATE)
        store.write_batch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requests_configured_types(self, healthday_config: HealthDayConfig) -> None:
        store = AsyncMock(spec=HealthStore)
        await HealthSession(store, healthday_config).request_access()
        store.request_access.assert_awaited_once_with(
            read=healthday_config.access.read, write=healthday_config.access.write
        )


class TestWriteAndFetch:
    @pytest.mark.asyncio
    async def test_write_then_report(
        self, unauthorized_store: InMemoryHealthStore, healthday_config: HealthDayConfig
    ) -> None:
        session = HealthSession(unauthorized_store, healthday_config)
        await session.request_access()
        await session.write(TEST_DATE)
        assert await session.report(TEST_DATE) == [
            "Step Count: 10000",
            "Hours Slept: 8.0",
            "Heart Rate: 70.0",
            "HRV: 50.00",
        ]

    @pytest.mark.asyncio
    async def test_write_error_surfaces(
        self, unauthorized_store: InMemoryHealthStore, healthday_config: HealthDayConfig
    ) -> None:
        session = HealthSession(unauthorized_store, healthday_config)
        await session.request_access()
        unauthorized_store.fail_writes("quota exceeded")
        with pytest.raises(WriteError, match="quota exceeded"):
            await session.write(TEST_DATE)
