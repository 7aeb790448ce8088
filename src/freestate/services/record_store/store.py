"""Durable record store.

Object stores for companies, projects and places keyed by record id, plus
the auto-increment pending action queue, all in one SQLite file. SQLite
calls run in a worker thread, serialized by an asyncio lock, so the event
loop never blocks on disk I/O.

Keys keep their JSON type: ``1`` and ``"1"`` are distinct records.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

import orjson

from freestate.core.records import (
    RECORD_TYPES_BY_STORE,
    DirectoryRecord,
    PendingAction,
    RecordId,
)
from freestate.services.record_store.migration import MigrationManager
from freestate.services.record_store.transaction import TransactionManager
from freestate.shared.cancellation import CancellationToken
from freestate.shared.clock import Clock, now_ms
from freestate.shared.constants import StoreName
from freestate.shared.errors import (
    ErrorCode,
    FreeStateError,
    create_data_shape_error,
    create_storage_error,
)
from freestate.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _encode_key(record_id: RecordId) -> str:
    return orjson.dumps(record_id).decode("utf-8")


def _encode_payload(data: Any) -> str:
    return orjson.dumps(data).decode("utf-8")


class RecordStore:
    """Async facade over the SQLite record store.

    Example:
        >>> store = RecordStore(Path("offline.db"))
        >>> await store.open()
        >>> await store.put("places", Place(id="L1", name="Bloemfontein"))
        >>> await store.close()
    """

    def __init__(self, db_path: Path | str, clock: Clock = now_ms) -> None:
        self.db_path = Path(db_path)
        self.clock = clock
        self.conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self.conn is not None

    # Lifecycle

    async def open(self) -> None:
        """Open the database and apply pending schema migrations.

        Raises:
            StorageError: If the database cannot be opened or migrated
        """
        if self.conn is not None:
            return
        async with self._lock:
            self.conn = await asyncio.to_thread(self._open_sync)

    def _open_sync(self) -> sqlite3.Connection:
        start = time.perf_counter()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
        except (sqlite3.Error, OSError) as e:
            error = create_storage_error(
                f"Failed to open record store: {e}",
                file_path=str(self.db_path),
                operation="open_record_store",
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation="open_record_store")
            raise error from e

        try:
            MigrationManager(conn).upgrade()
        except FreeStateError:
            conn.close()
            raise

        log_operation_success(
            logger=logger,
            operation="open_record_store",
            duration_ms=(time.perf_counter() - start) * 1000,
            context={"db_path": str(self.db_path)},
        )
        return conn

    async def close(self) -> None:
        async with self._lock:
            if self.conn is not None:
                conn, self.conn = self.conn, None
                await asyncio.to_thread(conn.close)
                logger.debug("Closed record store %s", self.db_path)

    async def __aenter__(self) -> RecordStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # Execution helpers

    async def _run(
        self,
        operation: str,
        func: Callable[[sqlite3.Connection], T],
        token: CancellationToken | None,
    ) -> T:
        if token is not None:
            token.raise_if_cancelled(operation)
        async with self._lock:
            conn = self.conn
            if conn is None:
                raise create_storage_error(
                    "Record store is not open",
                    file_path=str(self.db_path),
                    operation=operation,
                    code=ErrorCode.STORE_NOT_OPEN,
                )
            try:
                return await asyncio.to_thread(func, conn)
            except sqlite3.Error as e:
                error = create_storage_error(
                    f"Record store operation '{operation}' failed: {e}",
                    file_path=str(self.db_path),
                    operation=operation,
                    original_error=e,
                )
                log_operation_error(logger=logger, error=error, operation=operation)
                raise error from e

    @staticmethod
    def _record_store(store: StoreName | str) -> StoreName:
        try:
            name = StoreName(store)
        except ValueError as e:
            raise create_storage_error(
                f"Unknown object store: {store}",
                operation="resolve_store",
                original_error=e,
                code=ErrorCode.UNKNOWN_STORE,
            ) from e
        if name not in RECORD_TYPES_BY_STORE:
            raise create_storage_error(
                f"Object store '{name.value}' does not hold directory records",
                operation="resolve_store",
                code=ErrorCode.UNKNOWN_STORE,
            )
        return name

    def _decode_record(self, store: StoreName, payload: str) -> DirectoryRecord | None:
        record_type = RECORD_TYPES_BY_STORE[store]
        try:
            return record_type.from_dict(orjson.loads(payload))
        except (ValueError, TypeError) as e:
            logger.warning(
                "Skipping malformed %s record: %s",
                store.value,
                e,
                extra={"operation": "decode_record", "context": {"store": store.value}},
            )
            return None

    # Record object stores

    async def put(
        self,
        store: StoreName | str,
        records: DirectoryRecord | dict[str, Any] | Iterable[DirectoryRecord | dict[str, Any]],
        token: CancellationToken | None = None,
    ) -> int:
        """Upsert one or many records; last write wins per id.

        All records of one call are written in a single transaction, so the
        call commits or rolls back as a whole.

        Returns:
            Number of records written
        """
        name = self._record_store(store)
        record_type = RECORD_TYPES_BY_STORE[name]
        if isinstance(records, (DirectoryRecord, dict)):
            records = [records]

        # Copy through a dict so later caller mutations never reach the store
        rows: list[tuple[str, str, int]] = []
        now = self.clock()
        for record in records:
            data = record.to_dict() if isinstance(record, DirectoryRecord) else dict(record)
            try:
                record_type.from_dict(data)
                rows.append((_encode_key(data["id"]), _encode_payload(data), now))
            except (KeyError, TypeError) as e:
                raise create_data_shape_error(
                    f"Invalid {name.value} record: {e}",
                    operation="put",
                    original_error=e,
                    code=ErrorCode.VALIDATION_ERROR,
                ) from e

        def _put(conn: sqlite3.Connection) -> int:
            with TransactionManager(conn).transaction():
                conn.executemany(
                    f"INSERT OR REPLACE INTO store_{name.value} (key, payload, updated_at) "
                    "VALUES (?, ?, ?)",
                    rows,
                )
            return len(rows)

        return await self._run("put", _put, token)

    async def replace(
        self,
        store: StoreName | str,
        records: Iterable[DirectoryRecord],
        token: CancellationToken | None = None,
    ) -> int:
        """Replace a store's contents with ``records`` in one transaction.

        Used for full-sheet snapshots so rows deleted from the sheet do not
        linger offline.
        """
        name = self._record_store(store)
        now = self.clock()
        rows = [(_encode_key(r.id), _encode_payload(r.to_dict()), now) for r in records]

        def _replace(conn: sqlite3.Connection) -> int:
            with TransactionManager(conn).transaction():
                conn.execute(f"DELETE FROM store_{name.value}")
                conn.executemany(
                    f"INSERT OR REPLACE INTO store_{name.value} (key, payload, updated_at) "
                    "VALUES (?, ?, ?)",
                    rows,
                )
            return len(rows)

        return await self._run("replace", _replace, token)

    async def get_all(
        self,
        store: StoreName | str,
        token: CancellationToken | None = None,
    ) -> list[DirectoryRecord]:
        """All records of a store in insertion order; malformed rows are skipped."""
        name = self._record_store(store)

        def _get_all(conn: sqlite3.Connection) -> list[str]:
            cursor = conn.execute(f"SELECT payload FROM store_{name.value} ORDER BY rowid")
            return [row[0] for row in cursor.fetchall()]

        payloads = await self._run("get_all", _get_all, token)
        decoded = (self._decode_record(name, payload) for payload in payloads)
        return [record for record in decoded if record is not None]

    async def get_by_id(
        self,
        store: StoreName | str,
        record_id: RecordId,
        token: CancellationToken | None = None,
    ) -> DirectoryRecord | None:
        name = self._record_store(store)
        key = _encode_key(record_id)

        def _get(conn: sqlite3.Connection) -> str | None:
            row = conn.execute(
                f"SELECT payload FROM store_{name.value} WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None

        payload = await self._run("get_by_id", _get, token)
        if payload is None:
            return None
        return self._decode_record(name, payload)

    async def remove(
        self,
        store: StoreName | str,
        record_id: RecordId,
        token: CancellationToken | None = None,
    ) -> bool:
        """Delete one record; returns False if it did not exist."""
        name = self._record_store(store)
        key = _encode_key(record_id)

        def _remove(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(f"DELETE FROM store_{name.value} WHERE key = ?", (key,))
            return cursor.rowcount > 0

        return await self._run("remove", _remove, token)

    async def clear(
        self,
        store: StoreName | str,
        token: CancellationToken | None = None,
    ) -> int:
        """Delete every row of a store, including the pending action queue."""
        if store == StoreName.PENDING_ACTIONS:
            table = "pending_actions"
        else:
            table = f"store_{self._record_store(store).value}"

        def _clear(conn: sqlite3.Connection) -> int:
            return conn.execute(f"DELETE FROM {table}").rowcount

        return await self._run("clear", _clear, token)

    # Pending action queue

    async def add_pending_action(
        self,
        action_type: str,
        data: Any = None,
        url: str | None = None,
        method: str | None = None,
        token: CancellationToken | None = None,
    ) -> int:
        """Queue an action stamped with the current time and unprocessed.

        Returns:
            The auto-increment id assigned to the action
        """
        payload = _encode_payload(data)
        timestamp = self.clock()

        def _add(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "INSERT INTO pending_actions (type, payload, url, method, timestamp, processed) "
                "VALUES (?, ?, ?, ?, ?, 0)",
                (action_type, payload, url, method.upper() if method else None, timestamp),
            )
            return int(cursor.lastrowid)

        action_id = await self._run("add_pending_action", _add, token)
        logger.debug("Queued pending action %d (%s)", action_id, action_type)
        return action_id

    async def get_pending_actions(
        self,
        unprocessed_only: bool = False,
        token: CancellationToken | None = None,
    ) -> list[PendingAction]:
        """Queued actions ordered by id; malformed rows are skipped."""
        query = "SELECT id, type, payload, url, method, timestamp, processed FROM pending_actions"
        if unprocessed_only:
            query += " WHERE processed = 0"
        query += " ORDER BY id"

        def _get(conn: sqlite3.Connection) -> list[tuple[Any, ...]]:
            return conn.execute(query).fetchall()

        actions: list[PendingAction] = []
        for row in await self._run("get_pending_actions", _get, token):
            action_id, action_type, payload, url, method, timestamp, processed = row
            try:
                data = orjson.loads(payload)
            except orjson.JSONDecodeError as e:
                logger.warning("Skipping pending action %s with malformed payload: %s", action_id, e)
                continue
            actions.append(
                PendingAction(
                    id=action_id,
                    type=action_type,
                    data=data,
                    url=url,
                    method=method,
                    timestamp=timestamp,
                    processed=bool(processed),
                )
            )
        return actions

    async def mark_action_processed(
        self,
        action_id: int,
        token: CancellationToken | None = None,
    ) -> bool:
        """Flag an action as replayed; returns False if the id is unknown."""

        def _mark(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                "UPDATE pending_actions SET processed = 1 WHERE id = ?", (action_id,)
            )
            return cursor.rowcount > 0

        return await self._run("mark_action_processed", _mark, token)

    async def count_pending(self, token: CancellationToken | None = None) -> int:
        """Number of unprocessed actions."""

        def _count(conn: sqlite3.Connection) -> int:
            row = conn.execute("SELECT COUNT(*) FROM pending_actions WHERE processed = 0").fetchone()
            return int(row[0])

        return await self._run("count_pending", _count, token)

    async def purge_processed_actions(
        self,
        before_ms: int,
        token: CancellationToken | None = None,
    ) -> int:
        """Delete processed actions queued before ``before_ms`` (epoch ms).

        Unprocessed actions are never purged.
        """

        def _purge(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "DELETE FROM pending_actions WHERE processed = 1 AND timestamp < ?",
                (before_ms,),
            )
            return cursor.rowcount

        purged = await self._run("purge_processed_actions", _purge, token)
        if purged:
            logger.info("Purged %d processed pending actions", purged)
        return purged
