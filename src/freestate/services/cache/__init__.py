"""Expiring key-value cache and its storage backends."""

from freestate.services.cache.expiring_cache import CacheEntry, CacheStats, ExpiringCache
from freestate.services.cache.storage import (
    KeyValueStorage,
    MemoryKeyValueStorage,
    SQLiteKeyValueStorage,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ExpiringCache",
    "KeyValueStorage",
    "MemoryKeyValueStorage",
    "SQLiteKeyValueStorage",
]
