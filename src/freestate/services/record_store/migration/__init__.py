"""Record store schema migrations."""

from freestate.services.record_store.migration.manager import (
    RECORD_TABLES,
    SCHEMA_VERSION,
    MigrationManager,
)

__all__ = ["RECORD_TABLES", "SCHEMA_VERSION", "MigrationManager"]
