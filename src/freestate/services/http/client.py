"""HTTP client owning the aiohttp session lifecycle.

One ClientSession per client, created in ``open()`` and released in
``close()``. Requests go through :func:`fetch_with_retry` with the
configured timeout and retry policy unless a call overrides them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from freestate.config.models.api_settings import APISettings
from freestate.services.http.response import HttpResponse
from freestate.services.http.retry import Sleep, fetch_with_retry
from freestate.shared.cancellation import CancellationToken
from freestate.shared.constants import ContentTypes, HTTPHeaders, NetworkConfig
from freestate.shared.errors import ErrorCode, create_network_error

logger = logging.getLogger(__name__)


class HttpClient:
    """Session-owning HTTP client.

    Args:
        settings: Timeout and retry defaults
        session: Pre-built session (tests); the client then does not close it
        sleep: Backoff sleeper, injectable for tests
    """

    def __init__(
        self,
        settings: APISettings | None = None,
        session: aiohttp.ClientSession | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings or APISettings()
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def open(self) -> None:
        if self.is_open:
            return
        connector = aiohttp.TCPConnector(
            limit=NetworkConfig.CONNECTOR_LIMIT,
            limit_per_host=NetworkConfig.CONNECTOR_LIMIT_PER_HOST,
            enable_cleanup_closed=True,
        )
        timeout = aiohttp.ClientTimeout(
            total=self.settings.request_timeout,
            connect=NetworkConfig.CONNECT_TIMEOUT,
        )
        self._session = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={HTTPHeaders.USER_AGENT: NetworkConfig.USER_AGENT},
        )
        self._owns_session = True
        logger.debug("HTTP session opened")

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP session closed")
        self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise create_network_error(
                "HTTP client is not open",
                operation="http_session",
                code=ErrorCode.NETWORK_ERROR,
            )
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        token: CancellationToken | None = None,
    ) -> HttpResponse:
        """Send a request with the client's retry policy.

        ``max_retries=0`` gives a single attempt.
        """
        request_headers = dict(headers or {})
        if json is not None:
            request_headers.setdefault(HTTPHeaders.CONTENT_TYPE, ContentTypes.JSON)
        return await fetch_with_retry(
            self.session,
            url,
            method=method.upper(),
            headers=request_headers or None,
            json=json,
            timeout=timeout if timeout is not None else self.settings.request_timeout,
            max_retries=max_retries if max_retries is not None else self.settings.max_retries,
            base_delay=self.settings.retry_base_delay,
            rate_limit_delay=self.settings.rate_limit_delay,
            token=token,
            sleep=self._sleep,
        )

    async def get(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.request("GET", url, **kwargs)
