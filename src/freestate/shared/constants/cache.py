"""
Cache Configuration Constants

Time values in this module are epoch milliseconds, matching the
timestamps stored in cache entries.
"""

# Base time units (milliseconds)
BASE_MILLISECOND = 1
BASE_SECOND_MS = 1000 * BASE_MILLISECOND
BASE_MINUTE_MS = 60 * BASE_SECOND_MS
BASE_HOUR_MS = 60 * BASE_MINUTE_MS
BASE_DAY_MS = 24 * BASE_HOUR_MS


class CacheDuration:
    """Named TTL tiers for cached sheet data."""

    SHORT = 2 * BASE_MINUTE_MS  # 2 minutes
    MEDIUM = 10 * BASE_MINUTE_MS  # 10 minutes
    LONG = 30 * BASE_MINUTE_MS  # 30 minutes
    VERY_LONG = 60 * BASE_MINUTE_MS  # 60 minutes


class CacheConfig:
    """Expiring cache configuration."""

    KEY_PREFIX = "cache_"
    RECORDS_KEY_TEMPLATE = "records_{sheet_type}"
    KV_TABLE = "kv_storage"

    # Evictions attempted on quota errors before a write is dropped
    MAX_QUOTA_EVICTIONS = 1
