"""Synchronous string key-value backends for the expiring cache.

Both backends enforce an optional byte quota over all stored keys and
values and raise StorageQuotaExceededError when a write would exceed it.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from freestate.shared.constants import CacheConfig
from freestate.shared.errors import (
    ErrorCode,
    create_quota_exceeded_error,
    create_storage_error,
)
from freestate.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStorage(Protocol):
    """Minimal string key-value contract."""

    def open(self) -> None: ...

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterator[str]: ...

    def size_bytes(self) -> int: ...

    def close(self) -> None: ...


class MemoryKeyValueStorage:
    """In-process backend, used for tests and ephemeral CLI runs."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def open(self) -> None:
        """No-op; memory storage needs no setup."""

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            current = self.size_bytes()
            previous = self._data.get(key)
            if previous is not None:
                current -= _entry_size(key, previous)
            required = current + _entry_size(key, value)
            if required > self.quota_bytes:
                raise create_quota_exceeded_error(required, self.quota_bytes, operation="kv_set")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def size_bytes(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._data.items())

    def close(self) -> None:
        self._data.clear()


class SQLiteKeyValueStorage:
    """SQLite-backed persistent key-value storage.

    Uses WAL mode and autocommit, like every SQLite file the client owns.

    Example:
        >>> storage = SQLiteKeyValueStorage(Path("cache.db"))
        >>> storage.open()
        >>> storage.set("cache_companies", "{}")
        >>> storage.close()
    """

    def __init__(self, db_path: Path | str, quota_bytes: int | None = None) -> None:
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes
        self.conn: sqlite3.Connection | None = None

    def open(self) -> None:
        """Open the database and create the storage table.

        Raises:
            StorageError: If the database cannot be opened
        """
        if self.conn is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,
            )
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")
            self.conn.execute(
                f"CREATE TABLE IF NOT EXISTS {CacheConfig.KV_TABLE} ("
                "key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            log_operation_success(
                logger=logger,
                operation="open_kv_storage",
                duration_ms=0,
                context={"db_path": str(self.db_path)},
            )
        except (sqlite3.Error, OSError) as e:
            self.conn = None
            error = create_storage_error(
                f"Failed to open cache storage: {e}",
                file_path=str(self.db_path),
                operation="open_kv_storage",
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation="open_kv_storage")
            raise error from e

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise create_storage_error(
                "Cache storage is not open",
                file_path=str(self.db_path),
                operation="kv_access",
                code=ErrorCode.STORE_NOT_OPEN,
            )
        return self.conn

    def _execute(self, operation: str, sql: str, params: tuple[str, ...] = ()) -> sqlite3.Cursor:
        """Run one statement, raising StorageError for any SQLite failure."""
        conn = self._connection()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as e:
            raise create_storage_error(
                f"Cache storage {operation} failed: {e}",
                file_path=str(self.db_path),
                operation=operation,
                original_error=e,
            ) from e

    def get(self, key: str) -> str | None:
        row = self._execute(
            "kv_get", f"SELECT value FROM {CacheConfig.KV_TABLE} WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            previous = self.get(key)
            current = self.size_bytes()
            if previous is not None:
                current -= _entry_size(key, previous)
            required = current + _entry_size(key, value)
            if required > self.quota_bytes:
                raise create_quota_exceeded_error(required, self.quota_bytes, operation="kv_set")
        self._execute(
            "kv_set",
            f"INSERT OR REPLACE INTO {CacheConfig.KV_TABLE} (key, value) VALUES (?, ?)",
            (key, value),
        )

    def delete(self, key: str) -> None:
        self._execute("kv_delete", f"DELETE FROM {CacheConfig.KV_TABLE} WHERE key = ?", (key,))

    def keys(self) -> Iterator[str]:
        rows = self._execute("kv_keys", f"SELECT key FROM {CacheConfig.KV_TABLE}").fetchall()
        return iter([row[0] for row in rows])

    def size_bytes(self) -> int:
        row = self._execute(
            "kv_size",
            "SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) "
            f"FROM {CacheConfig.KV_TABLE}"
        ).fetchone()
        return int(row[0])

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logger.debug("Closed cache storage %s", self.db_path)
