"""Schema migrations for the durable record store.

Migrations are additive: each version only creates tables or indexes that
do not exist yet, so upgrading never rewrites stored records. Downgrades
are not supported.
"""

from __future__ import annotations

import logging
import sqlite3

from freestate.shared.errors import ErrorCode, ErrorContext, StorageError

logger = logging.getLogger(__name__)

RECORD_TABLES = ("companies", "projects", "places")

_V1_RECORD_TABLE = """
CREATE TABLE IF NOT EXISTS store_{name} (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);
"""

_V1_PENDING_ACTIONS = """
CREATE TABLE IF NOT EXISTS pending_actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    payload TEXT NOT NULL,
    url TEXT,
    method TEXT,
    timestamp INTEGER NOT NULL,
    processed INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_pending_timestamp ON pending_actions(timestamp);
CREATE INDEX IF NOT EXISTS idx_pending_type ON pending_actions(type);
"""

_V2_PROCESSED_INDEX = """
CREATE INDEX IF NOT EXISTS idx_pending_processed ON pending_actions(processed, timestamp);
"""

MIGRATIONS: dict[int, str] = {
    1: "".join(_V1_RECORD_TABLE.format(name=name) for name in RECORD_TABLES) + _V1_PENDING_ACTIONS,
    2: _V2_PROCESSED_INDEX,
}

SCHEMA_VERSION = max(MIGRATIONS)


class MigrationManager:
    """Database schema migration manager."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._ensure_version_table()
        self._current_version = self._get_current_version()

    def get_current_version(self) -> int:
        return self._current_version

    def _ensure_version_table(self) -> None:
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "version INTEGER PRIMARY KEY, "
            "applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL)"
        )

    def _get_current_version(self) -> int:
        row = self.conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row and row[0] is not None else 0

    def upgrade(self) -> None:
        """Bring the schema to the latest version."""
        self.migrate_to(SCHEMA_VERSION)

    def migrate_to(self, target_version: int) -> None:
        """Apply migrations up to ``target_version``.

        Raises:
            ValueError: If the target is unknown or lower than the current version
            StorageError: If a migration fails; that migration is rolled back
        """
        if target_version not in MIGRATIONS and target_version != 0:
            msg = f"Invalid target version: {target_version}"
            raise ValueError(msg)
        if target_version < self._current_version:
            msg = (
                f"Downgrade from version {self._current_version} to {target_version} "
                "is not supported"
            )
            raise ValueError(msg)
        if target_version == self._current_version:
            logger.debug("Schema already at version %d", target_version)
            return

        for version in range(self._current_version + 1, target_version + 1):
            self._apply_migration(version)

        logger.info("Record store schema upgraded to version %d", target_version)

    def _apply_migration(self, version: int) -> None:
        statements = [s.strip() for s in MIGRATIONS[version].split(";") if s.strip()]
        try:
            self.conn.execute("BEGIN")
            for statement in statements:
                self.conn.execute(statement)
            self.conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            self.conn.execute("COMMIT")
        except sqlite3.Error as e:
            self.conn.execute("ROLLBACK")
            logger.exception("Failed to apply migration to version %d", version)
            raise StorageError(
                ErrorCode.MIGRATION_FAILED,
                f"Migration to version {version} failed: {e!s}",
                ErrorContext(operation="migrate", additional_data={"version": version}),
                e,
            ) from e
        self._current_version = version

    def get_migration_history(self) -> list[dict[str, int | str]]:
        """Applied versions with their timestamps, oldest first."""
        cursor = self.conn.execute("SELECT version, applied_at FROM schema_version ORDER BY version")
        return [{"version": row[0], "applied_at": row[1]} for row in cursor.fetchall()]

    def validate_schema(self) -> bool:
        """Check that every expected table exists and the schema is current."""
        required_tables = [f"store_{name}" for name in RECORD_TABLES]
        required_tables += ["pending_actions", "schema_version"]
        for table in required_tables:
            cursor = self.conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (table,),
            )
            if cursor.fetchone() is None:
                logger.error("Required table '%s' not found", table)
                return False
        return self._get_current_version() == SCHEMA_VERSION
