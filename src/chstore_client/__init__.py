"""
ClickHouse Store Client Library

Thin async HTTP clients used by the bulk loader. Every call opens its own
connection and releases it before returning, on success and on failure.

Usage:
    from chstore_client import IngestionClient, ControlClient, StoreConfig

    cfg = StoreConfig(url="http://localhost:8123", table="drill_events")
    await IngestionClient(cfg).insert(rows, max_block_size=10_000)
    await ControlClient(cfg).optimize(wait=True)
"""

from .client import IngestionClient, ControlClient, StoreConfig
from .errors import (
    StoreOperationalError,
    StoreQueryError,
    FatalWriteError,
    FatalCompactionError,
    map_store_error,
)

__version__ = "1.0.0"
__all__ = [
    "IngestionClient",
    "ControlClient",
    "StoreConfig",
    "StoreOperationalError",
    "StoreQueryError",
    "FatalWriteError",
    "FatalCompactionError",
    "map_store_error",
]
