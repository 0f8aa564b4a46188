"""Load, validate, and hot-reload the healthday aggregation configuration.

The config lives in ``healthday_config.yaml`` alongside this module.  At
startup it is loaded once and cached.  Call ``reload_healthday_config()`` to
re-read from disk without a restart.

Usage::

    from healthday.metrics.config_loader import get_healthday_config

    config = get_healthday_config()
    config.access.read                        # [SampleType.STEP_COUNT, ...]
    config.reporting.precision["hrv"]         # 2
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from healthday.metrics.base import DEFAULT_PRECISION, SampleType

logger = logging.getLogger("healthday.metrics.config")

_CONFIG_PATH = Path(__file__).parent / "healthday_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class AccessConfig:
    """Sample types requested from the store at session start."""

    read: list[SampleType]
    write: list[SampleType]


@dataclass
class AggregationConfig:
    max_concurrent_queries: int = 4


@dataclass
class ReportingConfig:
    precision: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PRECISION))


@dataclass
class HealthDayConfig:
    """Complete, validated configuration.

    Attributes:
        version:     Config schema version string.
        access:      Read/write types requested from the store.
        aggregation: Aggregator settings.
        reporting:   Display precision per metric.
    """

    version: str
    access: AccessConfig
    aggregation: AggregationConfig
    reporting: ReportingConfig
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when healthday_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"healthday config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _parse_types(values: object, section: str, errors: list[str]) -> list[SampleType]:
    if values is None:
        return list(SampleType)
    if not isinstance(values, list):
        errors.append(f"{section} must be a list of sample types")
        return []
    parsed: list[SampleType] = []
    for value in values:
        try:
            parsed.append(SampleType.from_identifier(str(value)))
        except ValueError:
            errors.append(f"{section} contains unknown sample type {value!r}")
    return parsed


def _section(raw: dict, key: str, errors: list[str]) -> dict:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        errors.append(f"'{key}' section must be a mapping, got {type(value).__name__}")
        return {}
    return value


def _validate_and_build(raw: dict) -> HealthDayConfig:
    """Validate the raw YAML dict and construct a HealthDayConfig.

    Missing optional sections fall back to defaults.  All problems are
    collected and reported together.

    Raises:
        ConfigValidationError: If any field is invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Access ──
    access_raw = _section(raw, "access", errors)
    access = AccessConfig(
        read=_parse_types(access_raw.get("read"), "access.read", errors),
        write=_parse_types(access_raw.get("write"), "access.write", errors),
    )

    # ── Aggregation ──
    agg_raw = _section(raw, "aggregation", errors)
    max_concurrent = agg_raw.get("max_concurrent_queries", 4)
    try:
        max_concurrent = int(max_concurrent)
    except (TypeError, ValueError):
        errors.append(
            f"aggregation.max_concurrent_queries must be an integer, got {max_concurrent!r}"
        )
        max_concurrent = 4
    if max_concurrent < 1:
        errors.append("aggregation.max_concurrent_queries must be at least 1")
    aggregation = AggregationConfig(max_concurrent_queries=max_concurrent)

    # ── Reporting ──
    precision_raw = _section(_section(raw, "reporting", errors), "precision", errors)
    precision = dict(DEFAULT_PRECISION)
    for key, val in precision_raw.items():
        if key not in precision:
            errors.append(f"reporting.precision.{key} is not a known metric")
            continue
        try:
            digits = int(val)
        except (TypeError, ValueError):
            errors.append(f"reporting.precision.{key} must be an integer, got {val!r}")
            continue
        if digits < 0:
            errors.append(f"reporting.precision.{key} must not be negative")
            continue
        precision[key] = digits
    reporting = ReportingConfig(precision=precision)

    if errors:
        raise ConfigValidationError(
            f"healthday_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return HealthDayConfig(
        version=version,
        access=access,
        aggregation=aggregation,
        reporting=reporting,
        _raw=raw,
    )


def load_healthday_config(path: Path | None = None) -> HealthDayConfig:
    """Load and validate the config from disk.

    Args:
        path: Override path to YAML.  Uses the bundled file by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded healthday config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: HealthDayConfig | None = None
_config_lock = threading.Lock()


def get_healthday_config() -> HealthDayConfig:
    """Return the global HealthDayConfig singleton, loading it on first call."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_healthday_config()
    return _config


def reload_healthday_config(path: Path | None = None) -> HealthDayConfig:
    """Reload the config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_healthday_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded healthday config: %s → %s", old_version, new_config.version)
    return new_config
