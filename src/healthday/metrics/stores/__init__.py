"""Health store backends for healthday.

Each backend implements the HealthStore ABC:
- request_access() for per-type read/write grants
- query_samples() / query_cumulative_sum() over a strict-start window
- write_batch() as an all-or-nothing batch

Available stores:
    InMemoryHealthStore    - in-process dict store
    AppleHealthExportStore - read-only Apple Health export.xml
"""

from healthday.metrics.stores.apple_health import AppleHealthExportStore
from healthday.metrics.stores.memory import InMemoryHealthStore

__all__ = [
    "AppleHealthExportStore",
    "InMemoryHealthStore",
]

# Registry: store_id → store class
STORE_REGISTRY: dict[str, type] = {
    "memory": InMemoryHealthStore,
    "apple_health_export": AppleHealthExportStore,
}


def get_store(store_id: str) -> "type":
    """Return the store class for a given slug.

    Args:
        store_id: e.g. 'memory', 'apple_health_export'

    Returns:
        The store class (not an instance).

    Raises:
        KeyError: If the store_id is not registered.
    """
    if store_id not in STORE_REGISTRY:
        raise KeyError(
            f"No store registered for '{store_id}'. "
            f"Available: {list(STORE_REGISTRY)}"
        )
    return STORE_REGISTRY[store_id]
