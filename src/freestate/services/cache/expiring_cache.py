"""Expiring key-value cache over a KeyValueStorage backend.

Entries are stored as JSON ``{data, timestamp, expiry}`` under a shared key
prefix. Reads past ``expiry`` are misses and delete the entry. The cache is
best-effort: write failures are logged and reported through the return
value, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import orjson

from freestate.services.cache.storage import KeyValueStorage
from freestate.shared.clock import Clock, now_ms
from freestate.shared.constants import CacheConfig
from freestate.shared.errors import (
    ErrorCode,
    ErrorContext,
    StorageError,
    StorageQuotaExceededError,
)
from freestate.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Stored value with its write time and expiry, both epoch milliseconds."""

    data: Any
    timestamp: int
    expiry: int

    def is_expired(self, now: int) -> bool:
        return now > self.expiry

    def to_json(self) -> str:
        return orjson.dumps(
            {"data": self.data, "timestamp": self.timestamp, "expiry": self.expiry}
        ).decode("utf-8")

    @classmethod
    def from_json(cls, raw: str) -> CacheEntry:
        """Decode a stored entry.

        Raises:
            ValueError: If ``raw`` is not a well-formed entry
        """
        payload = orjson.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("cache entry is not an object")
        try:
            return cls(
                data=payload["data"],
                timestamp=int(payload["timestamp"]),
                expiry=int(payload["expiry"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed cache entry: {e}") from e


@dataclass
class CacheStats:
    total: int = 0
    valid: int = 0
    expired: int = 0
    corrupted: int = 0
    size_bytes: int = 0


class ExpiringCache:
    """Prefix-scoped cache with per-entry TTLs.

    Args:
        storage: Backend holding the serialized entries
        prefix: Prefix applied to every key; only prefixed keys are managed
        clock: Epoch-millisecond clock, injectable for tests
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        prefix: str = CacheConfig.KEY_PREFIX,
        clock: Clock = now_ms,
    ) -> None:
        self.storage = storage
        self.prefix = prefix
        self.clock = clock

    def _storage_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _owned_keys(self) -> list[str]:
        return [key for key in self.storage.keys() if key.startswith(self.prefix)]

    def get(self, key: str) -> Any | None:
        """Return cached data for ``key``, or None on a miss.

        Expired and undecodable entries are deleted and count as misses, as
        does a backend that fails to read.
        """
        try:
            return self._read(self._storage_key(key))
        except StorageError as e:
            self._log_failure("cache_get", key, e, ErrorCode.CACHE_ERROR)
            return None

    def _read(self, storage_key: str) -> Any | None:
        raw = self.storage.get(storage_key)
        if raw is None:
            return None

        try:
            entry = CacheEntry.from_json(raw)
        except ValueError as e:
            logger.warning(
                "Discarding corrupted cache entry %s: %s",
                storage_key,
                e,
                extra={"error_code": ErrorCode.CACHE_CORRUPTED.name, "operation": "cache_get"},
            )
            self.storage.delete(storage_key)
            return None

        if entry.is_expired(self.clock()):
            self.storage.delete(storage_key)
            return None

        return entry.data

    def set(self, key: str, data: Any, ttl_ms: int) -> bool:
        """Store ``data`` for ``ttl_ms`` milliseconds.

        On a quota error the oldest entry is evicted and the write retried
        once; a second failure is logged and dropped.

        Returns:
            True if the entry was written
        """
        timestamp = self.clock()
        try:
            raw = CacheEntry(data=data, timestamp=timestamp, expiry=timestamp + ttl_ms).to_json()
        except TypeError as e:
            self._log_failure("cache_set", key, e)
            return False

        storage_key = self._storage_key(key)
        try:
            for attempt in range(CacheConfig.MAX_QUOTA_EVICTIONS + 1):
                try:
                    self.storage.set(storage_key, raw)
                    return True
                except StorageQuotaExceededError as e:
                    if attempt < CacheConfig.MAX_QUOTA_EVICTIONS and self.clear_oldest() is not None:
                        continue
                    self._log_failure("cache_set", key, e)
                    return False
        except StorageError as e:
            self._log_failure("cache_set", key, e)
        return False

    def delete(self, key: str) -> None:
        try:
            self.storage.delete(self._storage_key(key))
        except StorageError as e:
            self._log_failure("cache_delete", key, e, ErrorCode.CACHE_ERROR)

    def clear_oldest(self) -> str | None:
        """Evict the entry with the smallest timestamp.

        Undecodable entries are ignored when choosing.

        Returns:
            The evicted storage key, or None if nothing could be evicted
        """
        oldest_key: str | None = None
        oldest_timestamp: int | None = None
        for storage_key in self._owned_keys():
            raw = self.storage.get(storage_key)
            if raw is None:
                continue
            try:
                entry = CacheEntry.from_json(raw)
            except ValueError:
                continue
            if oldest_timestamp is None or entry.timestamp < oldest_timestamp:
                oldest_key, oldest_timestamp = storage_key, entry.timestamp

        if oldest_key is not None:
            self.storage.delete(oldest_key)
            logger.info("Evicted oldest cache entry %s to free space", oldest_key)
        return oldest_key

    def clear_expired(self) -> int:
        """Delete expired and undecodable entries.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        removed = 0
        for storage_key in self._owned_keys():
            raw = self.storage.get(storage_key)
            if raw is None:
                continue
            try:
                expired = CacheEntry.from_json(raw).is_expired(now)
            except ValueError:
                expired = True
            if expired:
                self.storage.delete(storage_key)
                removed += 1
        if removed:
            logger.info("Removed %d expired cache entries", removed)
        return removed

    def clear_all(self) -> int:
        """Delete every entry under the prefix; other keys are untouched."""
        keys = self._owned_keys()
        for storage_key in keys:
            self.storage.delete(storage_key)
        return len(keys)

    def stats(self) -> CacheStats:
        now = self.clock()
        stats = CacheStats()
        for storage_key in self._owned_keys():
            raw = self.storage.get(storage_key)
            if raw is None:
                continue
            stats.total += 1
            stats.size_bytes += len(storage_key.encode("utf-8")) + len(raw.encode("utf-8"))
            try:
                entry = CacheEntry.from_json(raw)
            except ValueError:
                stats.corrupted += 1
                continue
            if entry.is_expired(now):
                stats.expired += 1
            else:
                stats.valid += 1
        return stats

    def _log_failure(
        self,
        operation: str,
        key: str,
        error: Exception,
        code: ErrorCode = ErrorCode.CACHE_WRITE_FAILED,
    ) -> None:
        wrapped = StorageError(
            code,
            f"{operation} failed for {key}: {error}",
            ErrorContext(operation=operation, additional_data={"key": key}),
            error,
        )
        log_operation_error(logger=logger, error=wrapped, operation=operation, level=logging.WARNING)
