"""
Network Configuration Constants

Defaults for the sheet proxy client and the fetch-with-retry helper.
Delays and timeouts are in seconds.
"""

BASE_SECOND = 1.0


class NetworkConfig:
    """Network configuration constants."""

    DEFAULT_BASE_URL = "http://localhost:3001/api"

    # Timeout settings
    REQUEST_TIMEOUT = 30 * BASE_SECOND
    CONNECT_TIMEOUT = 10 * BASE_SECOND
    SYNC_REQUEST_TIMEOUT = 15 * BASE_SECOND

    # Retry settings
    DEFAULT_RETRIES = 3
    RETRY_BASE_DELAY = 1.0 * BASE_SECOND
    RATE_LIMIT_DELAY = 5.0 * BASE_SECOND
    MAX_RETRY_AFTER = 60 * BASE_SECOND

    # Connection pool
    CONNECTOR_LIMIT = 20
    CONNECTOR_LIMIT_PER_HOST = 10

    USER_AGENT = "FreeStateDirectory/0.1.0"


class ConnectivityConfig:
    """Connectivity monitor defaults."""

    PROBE_INTERVAL = 30 * BASE_SECOND
    PROBE_TIMEOUT = 5 * BASE_SECOND
    PROBE_PATH = "/health"
