"""Sample writer - submit one synthetic sample per metric as a single batch.

The fixture values are fixed test data, not configuration:

    steps       10000         at [ref, ref]
    sleep       ASLEEP        over [ref, ref + 8h)
    heart rate  70 count/min  at [ref, ref]
    HRV         50 ms         at [ref, ref]
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from healthday.metrics.base import (
    HealthStore,
    IntervalSample,
    QuantitySample,
    Sample,
    SampleType,
    SleepState,
    StoreError,
    WriteError,
)

logger = logging.getLogger("healthday.metrics.writer")

FIXTURE_STEPS = 10000.0
FIXTURE_SLEEP = timedelta(hours=8)
FIXTURE_HEART_RATE_BPM = 70.0
FIXTURE_HRV_MS = 50.0


def build_fixture_samples(reference: datetime) -> list[Sample]:
    """Return the four fixture samples anchored at ``reference``."""
    return [
        QuantitySample(SampleType.STEP_COUNT, FIXTURE_STEPS, reference, reference),
        IntervalSample(SleepState.ASLEEP, reference, reference + FIXTURE_SLEEP),
        QuantitySample(SampleType.HEART_RATE, FIXTURE_HEART_RATE_BPM, reference, reference),
        QuantitySample(SampleType.HRV, FIXTURE_HRV_MS, reference, reference),
    ]


class SampleWriter:
    """Write the fixture batch for a reference instant."""

    def __init__(self, store: HealthStore) -> None:
        self._store = store

    async def write(self, reference: datetime) -> None:
        """Build and submit the four fixture samples as one batch.

        Args:
            reference: Anchor instant for every sample.

        Raises:
            WriteError: If the store rejects the batch.  Carries the store's
                message; no partial state is reported.
        """
        samples = build_fixture_samples(reference)
        try:
            await self._store.write_batch(samples)
        except StoreError as exc:
            logger.error("Error writing data: %s", exc)
            raise WriteError(str(exc) or "Unknown error") from exc
        logger.info(
            "Data written successfully: %d samples at %s",
            len(samples), reference.isoformat(),
        )
