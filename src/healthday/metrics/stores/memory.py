"""In-process health store.

Keeps samples in a dict keyed by SampleType.  Queries use strict-start
window semantics, batch writes are all-or-nothing, and access is granted
per type.  Failures can be injected per type for exercising degraded paths.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from healthday.metrics.base import (
    AuthError,
    HealthStore,
    Sample,
    SampleType,
    StoreError,
    TimeWindow,
)

logger = logging.getLogger("healthday.metrics.stores.memory")


class InMemoryHealthStore(HealthStore):
    """Dict-backed store.

    Usage::

        store = InMemoryHealthStore()
        await store.request_access(read=SampleType, write=SampleType)
        await store.write_batch(samples)
        await store.query_samples(SampleType.HRV, TimeWindow.for_day(ref))
    """

    STORE_ID = "memory"
    DISPLAY_NAME = "In-memory store"

    def __init__(
        self,
        granted: Iterable[SampleType] = (),
        denied: Iterable[SampleType] = (),
    ) -> None:
        """Initialize an empty store.

        Args:
            granted: Types already authorized for read and write, as if
                     access had been granted in an earlier session.
            denied:  Types for which request_access() refuses to grant access.
        """
        self._samples: dict[SampleType, list[Sample]] = defaultdict(list)
        self._denied = set(denied)
        self._readable: set[SampleType] = set(granted)
        self._writable: set[SampleType] = set(granted)
        self._query_faults: dict[SampleType, str] = {}
        self._write_fault: str | None = None

    # ------------------------------------------------------------------
    # HealthStore interface
    # ------------------------------------------------------------------

    async def request_access(
        self, read: Iterable[SampleType], write: Iterable[SampleType]
    ) -> None:
        read, write = set(read), set(write)
        refused = (read | write) & self._denied
        if refused:
            names = ", ".join(sorted(t.value for t in refused))
            raise AuthError(f"Access not granted for: {names}")
        self._readable |= read
        self._writable |= write
        logger.debug(
            "Granted read=%d write=%d types", len(self._readable), len(self._writable)
        )

    async def query_samples(
        self, sample_type: SampleType, window: TimeWindow
    ) -> list[Sample]:
        if sample_type in self._query_faults:
            raise StoreError(self._query_faults[sample_type])
        if sample_type not in self._readable:
            raise StoreError(f"Read access not granted for {sample_type.value}")
        return [s for s in self._samples[sample_type] if window.contains_start(s.start)]

    async def write_batch(self, samples: list[Sample]) -> None:
        if self._write_fault is not None:
            raise StoreError(self._write_fault)
        unwritable = {s.sample_type for s in samples} - self._writable
        if unwritable:
            names = ", ".join(sorted(t.value for t in unwritable))
            raise StoreError(f"Write access not granted for: {names}")
        for sample in samples:
            self._samples[sample.sample_type].append(sample)
        logger.debug("Stored batch of %d samples", len(samples))

    # ------------------------------------------------------------------
    # Test / seeding helpers
    # ------------------------------------------------------------------

    def seed(self, *samples: Sample) -> None:
        """Insert samples directly, bypassing access checks."""
        for sample in samples:
            self._samples[sample.sample_type].append(sample)

    def fail_queries(self, sample_type: SampleType, message: str = "Store unavailable") -> None:
        """Make every query for ``sample_type`` raise StoreError."""
        self._query_faults[sample_type] = message

    def fail_writes(self, message: str = "Store unavailable") -> None:
        """Make every batch write raise StoreError."""
        self._write_fault = message

    def count(self, sample_type: SampleType | None = None) -> int:
        if sample_type is not None:
            return len(self._samples[sample_type])
        return sum(len(v) for v in self._samples.values())
