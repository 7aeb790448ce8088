"""HTTP access: session lifecycle and fetch-with-retry."""

from freestate.services.http.client import HttpClient
from freestate.services.http.response import HttpResponse
from freestate.services.http.retry import backoff_delay, extract_retry_after, fetch_with_retry

__all__ = [
    "HttpClient",
    "HttpResponse",
    "backoff_delay",
    "extract_retry_after",
    "fetch_with_retry",
]
