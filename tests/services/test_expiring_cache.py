"""Tests for the expiring cache and its storage backends."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from freestate.services.cache import (
    CacheEntry,
    ExpiringCache,
    MemoryKeyValueStorage,
    SQLiteKeyValueStorage,
)
from freestate.shared.errors import ErrorCode, StorageError, StorageQuotaExceededError

from tests.fakes import FakeClock


class TestExpiringCache:
    """Test cases for ExpiringCache get/set semantics."""

    def test_hit_within_ttl(self, memory_cache: ExpiringCache, clock: FakeClock) -> None:
        # Given
        memory_cache.set("companies", [{"id": "c1"}], ttl_ms=100)

        # When
        clock.advance(100)

        # Then
        assert memory_cache.get("companies") == [{"id": "c1"}]

    def test_expired_entry_is_a_miss_and_removed(self, memory_cache: ExpiringCache, clock: FakeClock) -> None:
        # Given an entry with a 100ms TTL
        memory_cache.set("companies", {"n": 1}, ttl_ms=100)

        # When it is read 150ms later
        clock.advance(150)
        value = memory_cache.get("companies")

        # Then
        assert value is None
        assert memory_cache.storage.get("cache_companies") is None

    def test_missing_key(self, memory_cache: ExpiringCache) -> None:
        assert memory_cache.get("nothing") is None

    def test_corrupted_entry_is_a_miss_and_removed(self, memory_cache: ExpiringCache) -> None:
        memory_cache.storage.set("cache_bad", "not json")
        memory_cache.storage.set("cache_partial", '{"data": 1}')

        assert memory_cache.get("bad") is None
        assert memory_cache.get("partial") is None
        assert list(memory_cache.storage.keys()) == []

    def test_entries_are_stored_under_prefix(self, clock: FakeClock) -> None:
        storage = MemoryKeyValueStorage()
        cache = ExpiringCache(storage, prefix="app_", clock=clock)

        cache.set("k", "v", ttl_ms=10)

        entry = CacheEntry.from_json(storage.get("app_k") or "")
        assert entry == CacheEntry(data="v", timestamp=clock.now, expiry=clock.now + 10)

    def test_unserializable_data_is_not_written(self, memory_cache: ExpiringCache) -> None:
        assert memory_cache.set("obj", object(), ttl_ms=10) is False
        assert memory_cache.get("obj") is None

    def test_memory_storage_open_is_a_no_op(self, clock: FakeClock) -> None:
        storage = MemoryKeyValueStorage()
        storage.open()
        cache = ExpiringCache(storage, clock=clock)

        assert cache.set("k", [1, 2], ttl_ms=10) is True
        storage.open()

        assert cache.get("k") == [1, 2]


class TestQuotaEviction:
    """Test cases for writes that exceed the storage quota."""

    PAYLOAD = "x" * 40
    TTL = 60_000

    def _entry_size(self, key: str, clock: FakeClock) -> int:
        raw = CacheEntry(data=self.PAYLOAD, timestamp=clock.now, expiry=clock.now + self.TTL).to_json()
        return len(f"cache_{key}") + len(raw)

    def test_oldest_entry_is_evicted_to_make_room(self, clock: FakeClock) -> None:
        # Given a quota that holds two entries but not three
        quota = int(self._entry_size("k1", clock) * 2.5)
        cache = ExpiringCache(MemoryKeyValueStorage(quota_bytes=quota), clock=clock)
        assert cache.set("k1", self.PAYLOAD, self.TTL)
        clock.advance(1)
        assert cache.set("k2", self.PAYLOAD, self.TTL)
        clock.advance(1)

        # When a third entry is written
        written = cache.set("k3", self.PAYLOAD, self.TTL)

        # Then the oldest entry made room
        assert written is True
        assert cache.get("k1") is None
        assert cache.get("k2") == self.PAYLOAD
        assert cache.get("k3") == self.PAYLOAD

    def test_write_dropped_when_eviction_is_not_enough(
        self, clock: FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        # Given a quota smaller than a single entry
        cache = ExpiringCache(MemoryKeyValueStorage(quota_bytes=20), clock=clock)

        # When
        with caplog.at_level(logging.WARNING, logger="freestate.services.cache.expiring_cache"):
            written = cache.set("big", self.PAYLOAD, self.TTL)

        # Then the failure is reported, not raised
        assert written is False
        assert "cache_set failed for big" in caplog.text


class TestMaintenance:
    """Test cases for clear_* and stats."""

    def test_clear_expired(self, memory_cache: ExpiringCache, clock: FakeClock) -> None:
        memory_cache.set("short", 1, ttl_ms=10)
        memory_cache.set("long", 2, ttl_ms=1000)
        memory_cache.storage.set("cache_broken", "{")
        clock.advance(50)

        removed = memory_cache.clear_expired()

        assert removed == 2
        assert memory_cache.get("long") == 2

    def test_clear_all_leaves_foreign_keys(self, memory_cache: ExpiringCache) -> None:
        # Given a key written by something else into the same storage
        memory_cache.storage.set("session_token", "abc")
        memory_cache.set("a", 1, ttl_ms=100)
        memory_cache.set("b", 2, ttl_ms=100)

        # When
        removed = memory_cache.clear_all()

        # Then
        assert removed == 2
        assert memory_cache.storage.get("session_token") == "abc"

    def test_clear_oldest_with_empty_cache(self, memory_cache: ExpiringCache) -> None:
        assert memory_cache.clear_oldest() is None

    def test_stats(self, memory_cache: ExpiringCache, clock: FakeClock) -> None:
        memory_cache.set("fresh", 1, ttl_ms=1000)
        memory_cache.set("stale", 2, ttl_ms=10)
        memory_cache.storage.set("cache_broken", "[]")
        memory_cache.storage.set("other", "ignored")
        clock.advance(100)

        stats = memory_cache.stats()

        assert (stats.total, stats.valid, stats.expired, stats.corrupted) == (3, 1, 1, 1)
        assert stats.size_bytes > 0


class TestSQLiteKeyValueStorage:
    """Test cases for the SQLite backend."""

    def test_values_survive_reopen(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "cache.db"
        storage = SQLiteKeyValueStorage(db_path)
        storage.open()
        storage.set("cache_a", "1")
        storage.set("cache_a", "2")
        storage.close()

        reopened = SQLiteKeyValueStorage(db_path)
        reopened.open()
        try:
            assert reopened.get("cache_a") == "2"
            assert list(reopened.keys()) == ["cache_a"]
            assert reopened.size_bytes() == len("cache_a") + 1
        finally:
            reopened.close()

    def test_quota(self, tmp_path: Path) -> None:
        storage = SQLiteKeyValueStorage(tmp_path / "cache.db", quota_bytes=10)
        storage.open()
        try:
            storage.set("k", "12345")
            with pytest.raises(StorageQuotaExceededError):
                storage.set("k2", "123456789")
            assert storage.get("k2") is None
        finally:
            storage.close()

    def test_use_before_open(self, tmp_path: Path) -> None:
        storage = SQLiteKeyValueStorage(tmp_path / "cache.db")

        with pytest.raises(StorageError) as exc_info:
            storage.get("k")

        assert exc_info.value.code == ErrorCode.STORE_NOT_OPEN

    def test_failing_table_raises_storage_error_and_cache_misses(
        self, tmp_path: Path, clock: FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        # Given an open storage whose table has been dropped underneath it
        storage = SQLiteKeyValueStorage(tmp_path / "cache.db")
        storage.open()
        assert storage.conn is not None
        storage.conn.execute("DROP TABLE kv_storage")
        cache = ExpiringCache(storage, clock=clock)

        try:
            # Then raw access raises the storage error
            with pytest.raises(StorageError) as exc_info:
                storage.get("app_k")
            assert exc_info.value.code == ErrorCode.STORAGE_ERROR

            # And the cache reports a logged miss
            with caplog.at_level(logging.WARNING, logger="freestate.services.cache.expiring_cache"):
                assert cache.get("k") is None
                cache.delete("k")
            assert "cache_get failed for k" in caplog.text
            assert "cache_delete failed for k" in caplog.text
        finally:
            storage.close()

    def test_sqlite_backend_with_cache(self, tmp_path: Path, clock: FakeClock) -> None:
        storage = SQLiteKeyValueStorage(tmp_path / "cache.db")
        storage.open()
        try:
            cache = ExpiringCache(storage, clock=clock)
            cache.set("records_places", [{"id": "loc-1", "name": "Old Town"}], ttl_ms=1000)

            assert cache.get("records_places") == [{"id": "loc-1", "name": "Old Town"}]
        finally:
            storage.close()
