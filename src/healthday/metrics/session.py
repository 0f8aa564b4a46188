"""Health session - request access once, then write or fetch a day.

The session is the host-side entry point over a HealthStore.  Access for the
configured read/write types is requested up front; until it has been granted
every write and fetch raises AuthError without touching the store.
"""

from __future__ import annotations

import logging
from datetime import datetime

from healthday.metrics.aggregator import MetricAggregator
from healthday.metrics.base import AggregateResult, AuthError, HealthStore
from healthday.metrics.config_loader import HealthDayConfig, get_healthday_config
from healthday.metrics.writer import SampleWriter

logger = logging.getLogger("healthday.metrics.session")


class HealthSession:
    """Write fixture samples and aggregate days against one store.

    Usage::

        session = HealthSession(InMemoryHealthStore())
        await session.request_access()
        await session.write(reference)
        result = await session.fetch(reference)
    """

    def __init__(self, store: HealthStore, config: HealthDayConfig | None = None) -> None:
        self._store = store
        self._config = config or get_healthday_config()
        self._aggregator = MetricAggregator(
            store, max_concurrent=self._config.aggregation.max_concurrent_queries
        )
        self._writer = SampleWriter(store)
        self._authorized = False
        self._access_error: str | None = None

    @property
    def store(self) -> HealthStore:
        return self._store

    @property
    def authorized(self) -> bool:
        return self._authorized

    @property
    def access_error(self) -> str | None:
        """Message from the last failed access request, if any."""
        return self._access_error

    async def request_access(self) -> None:
        """Request the configured read/write access from the store.

        Raises:
            AuthError: If the store refuses any requested type.
        """
        try:
            await self._store.request_access(
                read=self._config.access.read, write=self._config.access.write
            )
        except AuthError as exc:
            self._authorized = False
            self._access_error = str(exc)
            logger.warning("Authorization failed: %s", exc)
            raise
        self._authorized = True
        self._access_error = None
        logger.info("Access granted by %s", self._store.DISPLAY_NAME)

    async def write(self, reference: datetime) -> None:
        """Write the fixture batch anchored at ``reference``.

        Raises:
            AuthError:  If access has not been granted.
            WriteError: If the store rejects the batch.
        """
        self._require_access()
        await self._writer.write(reference)

    async def fetch(self, reference: datetime) -> AggregateResult:
        """Aggregate ``[reference, reference + 24h)``.

        Raises:
            AuthError: If access has not been granted.
        """
        self._require_access()
        return await self._aggregator.aggregate(reference)

    async def report(self, reference: datetime) -> list[str]:
        """Fetch a day and render it with the configured precision."""
        return self.format(await self.fetch(reference))

    def format(self, result: AggregateResult) -> list[str]:
        return result.format_lines(self._config.reporting.precision)

    def _require_access(self) -> None:
        if not self._authorized:
            raise AuthError(self._access_error or "Access has not been requested")
