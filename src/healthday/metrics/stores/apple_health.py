"""Apple Health export store.

Apple does not provide a server-side HealthKit API.  Data is exported from
the device as ``export.xml`` and uploaded.  This store parses that export
once and answers windowed queries from it.

HealthKit identifiers are resolved to SampleType here; records of any other
type are skipped.  The export is read-only, so write_batch() always fails.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Iterable
from xml.etree import ElementTree as ET

from healthday.metrics.base import (
    HealthStore,
    IntervalSample,
    QuantitySample,
    Sample,
    SampleType,
    SleepState,
    StoreError,
    TimeWindow,
)

logger = logging.getLogger("healthday.metrics.stores.apple_health")


def _parse_export_datetime(value: str) -> datetime:
    """Parse an export timestamp such as ``2026-02-23 08:00:00 -0500``.

    The UTC offset is dropped; the wall-clock time is kept as a naive datetime.
    """
    return datetime.fromisoformat(value.replace(" ", "T")[:19])


def parse_export_records(xml_bytes: bytes) -> list[Sample]:
    """Extract the tracked samples from an Apple Health ``export.xml``.

    Args:
        xml_bytes: Contents of the export file.

    Returns:
        Samples for the four tracked types, in document order.

    Raises:
        ValueError: If the XML cannot be parsed.
    """
    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as exc:
        logger.error("Apple Health XML parse error: %s", exc)
        raise ValueError(f"Invalid Apple Health XML: {exc}") from exc

    samples: list[Sample] = []
    skipped = 0

    for record in root.findall("Record"):
        try:
            sample_type = SampleType.from_identifier(record.get("type", ""))
        except ValueError:
            skipped += 1
            continue

        try:
            start = _parse_export_datetime(record.get("startDate", ""))
            end = _parse_export_datetime(record.get("endDate", "") or record.get("startDate", ""))
            value = record.get("value", "")
            if sample_type is SampleType.SLEEP:
                samples.append(
                    IntervalSample(SleepState.from_healthkit_value(value), start, end)
                )
            else:
                samples.append(QuantitySample(sample_type, float(value), start, end))
        except ValueError as exc:
            logger.warning("Skipping malformed %s record: %s", sample_type.value, exc)
            skipped += 1

    logger.info(
        "Apple Health XML: parsed %d samples, skipped %d records", len(samples), skipped
    )
    return samples


class AppleHealthExportStore(HealthStore):
    """Read-only store over a parsed Apple Health export."""

    STORE_ID = "apple_health_export"
    DISPLAY_NAME = "Apple Health export"

    def __init__(self, samples: Iterable[Sample] = ()) -> None:
        self._samples: dict[SampleType, list[Sample]] = defaultdict(list)
        for sample in samples:
            self._samples[sample.sample_type].append(sample)

    @classmethod
    def from_xml(cls, xml_bytes: bytes) -> "AppleHealthExportStore":
        return cls(parse_export_records(xml_bytes))

    @classmethod
    def from_path(cls, path: Path | str) -> "AppleHealthExportStore":
        return cls.from_xml(Path(path).read_bytes())

    async def request_access(
        self, read: Iterable[SampleType], write: Iterable[SampleType]
    ) -> None:
        """Always granted; the export was uploaded by its owner."""
        logger.debug("Apple Health export: access granted")

    async def query_samples(
        self, sample_type: SampleType, window: TimeWindow
    ) -> list[Sample]:
        return [s for s in self._samples[sample_type] if window.contains_start(s.start)]

    async def write_batch(self, samples: list[Sample]) -> None:
        raise StoreError("Apple Health export is read-only")
