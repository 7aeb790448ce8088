"""Cache and record store configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from freestate.shared.constants import CacheConfig


class CacheSettings(BaseModel):
    """Expiring key-value cache configuration."""

    enabled: bool = Field(default=True, description="Enable caching")
    db_path: str | None = Field(
        default=None,
        description="SQLite file for the cache (default: <data_dir>/cache.db)",
    )
    key_prefix: str = Field(
        default=CacheConfig.KEY_PREFIX,
        min_length=1,
        description="Prefix shared by every cache key",
    )
    quota_bytes: int | None = Field(
        default=None,
        gt=0,
        description="Maximum bytes stored under the cache; unlimited when unset",
    )
    purge_expired_on_open: bool = Field(
        default=True,
        description="Remove expired entries when the cache opens",
    )


class StoreSettings(BaseModel):
    """Durable record store configuration."""

    db_path: str | None = Field(
        default=None,
        description="SQLite file for the record store (default: <data_dir>/free-state-offline.db)",
    )
