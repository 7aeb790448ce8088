"""Fetch with timeout, cancellation and exponential backoff.

Each attempt gets a hard timeout and is aborted when the caller's
cancellation token fires. Non-2xx responses and network errors are
retried with ``base_delay * 2**attempt`` backoff; HTTP 429 waits at least
``rate_limit_delay`` (or the server's Retry-After, if longer). Cancellation
is never retried.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from freestate.services.http.response import HttpResponse
from freestate.shared.cancellation import CancellationToken, run_cancellable
from freestate.shared.constants import HTTPHeaders, HTTPStatusCodes, NetworkConfig
from freestate.shared.errors import (
    ErrorCode,
    NetworkError,
    create_http_status_error,
    create_network_error,
)
from freestate.shared.logging import log_api_call

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def extract_retry_after(response: HttpResponse) -> float | None:
    """Seconds from a numeric Retry-After header, capped; None if absent or unparsable."""
    value = response.header(HTTPHeaders.RETRY_AFTER)
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if seconds < 0:
        return None
    return min(seconds, NetworkConfig.MAX_RETRY_AFTER)


def backoff_delay(
    attempt: int,
    base_delay: float,
    response: HttpResponse | None = None,
    rate_limit_delay: float = NetworkConfig.RATE_LIMIT_DELAY,
) -> float:
    """Delay before retrying after failed attempt number ``attempt`` (0-based)."""
    delay = base_delay * (2**attempt)
    if response is not None and response.status == HTTPStatusCodes.TOO_MANY_REQUESTS:
        delay = max(delay, rate_limit_delay, extract_retry_after(response) or 0.0)
    return delay


async def _single_request(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    headers: dict[str, str] | None,
    json: Any,
    timeout: float,
) -> HttpResponse:
    async with session.request(
        method,
        url,
        headers=headers,
        json=json,
        timeout=aiohttp.ClientTimeout(total=timeout),
    ) as resp:
        # Undecodable bytes become U+FFFD instead of failing the attempt
        text = await resp.text(errors="replace")
        return HttpResponse(
            status=resp.status,
            text=text,
            url=url,
            headers=dict(resp.headers),
        )


async def fetch_with_retry(
    session: aiohttp.ClientSession,
    url: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    json: Any = None,
    timeout: float = NetworkConfig.REQUEST_TIMEOUT,
    max_retries: int = NetworkConfig.DEFAULT_RETRIES,
    base_delay: float = NetworkConfig.RETRY_BASE_DELAY,
    rate_limit_delay: float = NetworkConfig.RATE_LIMIT_DELAY,
    token: CancellationToken | None = None,
    sleep: Sleep = asyncio.sleep,
) -> HttpResponse:
    """Perform a request, retrying transient failures.

    Args:
        session: aiohttp session used for every attempt
        url: Request URL
        method: HTTP method
        headers: Extra request headers
        json: JSON body, if any
        timeout: Hard timeout per attempt in seconds
        max_retries: Retries after the first attempt
        base_delay: Backoff base in seconds
        rate_limit_delay: Minimum wait after HTTP 429
        token: Cancels the in-flight attempt or backoff wait
        sleep: Backoff sleeper, injectable for tests

    Returns:
        The first 2xx response

    Raises:
        OperationCancelledError: If the token fires; never retried
        HttpStatusError: If the last attempt returned a non-2xx status
        NetworkError: If the last attempt failed at the transport level or timed out
    """
    last_error: NetworkError | None = None

    for attempt in range(max_retries + 1):
        response: HttpResponse | None = None
        start = time.perf_counter()
        try:
            response = await run_cancellable(
                asyncio.wait_for(
                    _single_request(session, method, url, headers, json, timeout),
                    timeout,
                ),
                token,
                operation="fetch",
            )
        except asyncio.TimeoutError as e:
            last_error = create_network_error(
                f"Request to {url} timed out after {timeout}s",
                url=url,
                operation="fetch",
                original_error=e,
                code=ErrorCode.API_TIMEOUT,
            )
        except aiohttp.ClientError as e:
            last_error = create_network_error(
                f"Network error requesting {url}: {e}",
                url=url,
                operation="fetch",
                original_error=e,
            )
        else:
            log_api_call(
                logger,
                url,
                method=method,
                status_code=response.status,
                duration_ms=(time.perf_counter() - start) * 1000,
                context={"attempt": attempt + 1},
            )
            if response.ok:
                return response
            last_error = create_http_status_error(
                response.status,
                f"HTTP {response.status} from {url}",
                url=url,
                operation="fetch",
                body=response.text,
            )

        if attempt < max_retries:
            delay = backoff_delay(attempt, base_delay, response, rate_limit_delay)
            logger.info(
                "Attempt %d/%d for %s failed (%s); retrying in %.2fs",
                attempt + 1,
                max_retries + 1,
                url,
                last_error.code.value,
                delay,
            )
            await run_cancellable(sleep(delay), token, operation="fetch_backoff")

    if last_error is None:
        raise create_network_error(
            f"No request attempted for {url} (max_retries={max_retries})",
            url=url,
            operation="fetch",
        )
    raise last_error
