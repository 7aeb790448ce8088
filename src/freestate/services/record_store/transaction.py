"""Transaction manager for the record store's autocommit connection."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class TransactionManager:
    """Explicit BEGIN/COMMIT/ROLLBACK on a connection opened with ``isolation_level=None``."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def begin(self) -> None:
        self.conn.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        self.conn.execute("COMMIT")

    def rollback(self) -> None:
        self.conn.execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Commit on success, roll back and re-raise on any exception.

        Example:
            >>> with TransactionManager(conn).transaction() as tx:
            ...     tx.execute("DELETE FROM store_places")
        """
        self.begin()
        try:
            yield self.conn
            self.commit()
        except Exception:
            logger.debug("Rolling back record store transaction")
            self.rollback()
            raise
