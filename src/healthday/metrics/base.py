"""Base classes and canonical data models for the healthday metrics engine.

Every store backend must subclass HealthStore and return the canonical
QuantitySample / IntervalSample models.  These types are the single source
of truth consumed by the aggregator, the sample writer, and the API layer.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Union

logger = logging.getLogger("healthday.metrics")

#: Fixed length of the aggregation window.  Not a calendar day.
DAY_WINDOW = timedelta(hours=24)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class HealthDataError(Exception):
    """Base class for all store-boundary failures."""


class AuthError(HealthDataError):
    """Access was not granted for one or more sample types."""


class StoreError(HealthDataError):
    """A query or write failed at the store boundary."""


class WriteError(HealthDataError):
    """A batch write was rejected.

    Attributes:
        message: The store's error message, surfaced to the caller as-is.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SampleKind(str, Enum):
    """Shape of the samples recorded for a metric."""

    QUANTITY = "quantity"
    INTERVAL = "interval"


class SampleType(str, Enum):
    """The four metrics tracked per day.

    Each member knows its HealthKit identifier, its unit label and the kind
    of sample the store returns for it.
    """

    STEP_COUNT = "step_count"
    SLEEP = "sleep"
    HEART_RATE = "heart_rate"
    HRV = "hrv"

    @property
    def identifier(self) -> str:
        return _HK_IDENTIFIERS[self]

    @property
    def unit(self) -> str:
        return _UNITS[self]

    @property
    def kind(self) -> SampleKind:
        return SampleKind.INTERVAL if self is SampleType.SLEEP else SampleKind.QUANTITY

    @classmethod
    def from_identifier(cls, value: str) -> "SampleType":
        """Parse a HealthKit identifier or a slug into a SampleType.

        Args:
            value: e.g. 'HKQuantityTypeIdentifierStepCount' or 'step_count'.

        Returns:
            The matching SampleType.

        Raises:
            ValueError: If the identifier is not one of the four tracked types.
        """
        for member in cls:
            if value in (member.value, member.identifier):
                return member
        raise ValueError(f"Unknown sample type identifier: {value!r}")


_HK_IDENTIFIERS: dict[SampleType, str] = {
    SampleType.STEP_COUNT: "HKQuantityTypeIdentifierStepCount",
    SampleType.SLEEP: "HKCategoryTypeIdentifierSleepAnalysis",
    SampleType.HEART_RATE: "HKQuantityTypeIdentifierHeartRate",
    SampleType.HRV: "HKQuantityTypeIdentifierHeartRateVariabilitySDNN",
}

_UNITS: dict[SampleType, str] = {
    SampleType.STEP_COUNT: "count",
    SampleType.SLEEP: "h",
    SampleType.HEART_RATE: "count/min",
    SampleType.HRV: "ms",
}


class SleepState(str, Enum):
    """Sleep category.  Only ASLEEP intervals count toward hours slept."""

    ASLEEP = "asleep"
    OTHER = "other"

    @classmethod
    def from_healthkit_value(cls, value: str) -> "SleepState":
        """Map an HKCategoryValueSleepAnalysis value to a SleepState.

        Every ``...Asleep*`` stage (core, deep, REM, unspecified) is ASLEEP;
        InBed, Awake and anything unrecognised is OTHER.
        """
        if "Asleep" in value or value == cls.ASLEEP.value:
            return cls.ASLEEP
        return cls.OTHER


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QuantitySample:
    """A point-in-time or short-interval numeric reading.

    Attributes:
        sample_type: STEP_COUNT, HEART_RATE or HRV.
        value:       Magnitude, already in the type's unit.
        start:       When the reading began.
        end:         When the reading ended (may equal start).
    """

    sample_type: SampleType
    value: float
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.sample_type.kind is not SampleKind.QUANTITY:
            raise ValueError(f"{self.sample_type.value} is not a quantity type")
        if not math.isfinite(self.value) or self.value < 0:
            raise ValueError(f"Sample value must be finite and non-negative, got {self.value!r}")
        if self.end < self.start:
            raise ValueError("Sample end must not precede its start")


@dataclass(frozen=True)
class IntervalSample:
    """A sleep interval with a category state."""

    state: SleepState
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("Sample end must not precede its start")

    @property
    def sample_type(self) -> SampleType:
        return SampleType.SLEEP

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


Sample = Union[QuantitySample, IntervalSample]


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)`` used for strict-start queries."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("TimeWindow end must be after start")

    @classmethod
    def for_day(cls, reference: datetime) -> "TimeWindow":
        """Return ``[reference, reference + 24h)``."""
        return cls(start=reference, end=reference + DAY_WINDOW)

    def contains_start(self, instant: datetime) -> bool:
        """True if a sample starting at ``instant`` belongs to this window."""
        return self.start <= instant < self.end


# ---------------------------------------------------------------------------
# Aggregate result
# ---------------------------------------------------------------------------


@dataclass
class AggregateResult:
    """One scalar per metric for a single day.  Absent data reads as 0."""

    step_count: float = 0.0
    hours_slept: float = 0.0
    heart_rate: float = 0.0
    hrv: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    def format_lines(self, precision: dict[str, int] | None = None) -> list[str]:
        """Render the result as display lines.

        Args:
            precision: metric slug → decimal places.  Defaults to
                steps 0, sleep 1, heart rate 1, HRV 2.

        Returns:
            Four lines, e.g. ``["Step Count: 10000", "Hours Slept: 8.0", ...]``.
        """
        places = {**DEFAULT_PRECISION, **(precision or {})}
        rows = [
            ("Step Count", self.step_count, places[SampleType.STEP_COUNT.value]),
            ("Hours Slept", self.hours_slept, places[SampleType.SLEEP.value]),
            ("Heart Rate", self.heart_rate, places[SampleType.HEART_RATE.value]),
            ("HRV", self.hrv, places[SampleType.HRV.value]),
        ]
        return [f"{label}: {value:.{digits}f}" for label, value, digits in rows]


DEFAULT_PRECISION: dict[str, int] = {
    SampleType.STEP_COUNT.value: 0,
    SampleType.SLEEP.value: 1,
    SampleType.HEART_RATE.value: 1,
    SampleType.HRV.value: 2,
}


# ---------------------------------------------------------------------------
# Abstract store
# ---------------------------------------------------------------------------


class HealthStore(ABC):
    """Abstract base class for the external health-data store.

    Subclasses must implement:
        - request_access()
        - query_samples()
        - write_batch()

    Optional override:
        - query_cumulative_sum()  (defaults to summing query_samples())
    """

    #: Unique slug used by the store registry.
    STORE_ID: str = "unknown"

    #: Human-readable name for logging.
    DISPLAY_NAME: str = "Unknown Store"

    @abstractmethod
    async def request_access(
        self, read: Iterable[SampleType], write: Iterable[SampleType]
    ) -> None:
        """Ask the store for read and write access.

        Args:
            read:  Types the caller wants to query.
            write: Types the caller wants to write.

        Raises:
            AuthError: If access is not granted for any requested type.
        """

    @abstractmethod
    async def query_samples(
        self, sample_type: SampleType, window: TimeWindow
    ) -> list[Sample]:
        """Return every sample of ``sample_type`` whose start lies in ``window``.

        Raises:
            StoreError: If the query fails.
        """

    @abstractmethod
    async def write_batch(self, samples: list[Sample]) -> None:
        """Persist ``samples`` as one batch.

        Raises:
            StoreError: If the store rejects any sample.
        """

    async def query_cumulative_sum(
        self, sample_type: SampleType, window: TimeWindow
    ) -> float | None:
        """Return the summed value of quantity samples in ``window``.

        Returns None when there are no samples, mirroring a statistics query
        with no sum quantity.

        Raises:
            StoreError: If the query fails.
        """
        samples = await self.query_samples(sample_type, window)
        values = [s.value for s in samples if isinstance(s, QuantitySample)]
        if not values:
            return None
        return float(sum(values))
