"""Cooperative cancellation for network fetches and store operations.

Every long-running operation accepts an optional :class:`CancellationToken`.
Cancelling the token interrupts an in-flight ``await`` wrapped with
:func:`run_cancellable` and makes :meth:`CancellationToken.raise_if_cancelled`
fail fast before work starts. A newer fetch for the same sheet supersedes an
older one by cancelling the older token.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable
from typing import TypeVar

from freestate.shared.errors import create_cancelled_error

T = TypeVar("T")


class CancellationToken:
    """Thread-safe cancellation token.

    The flag is a ``threading.Event`` so store operations running in worker
    threads can poll it; callbacks let asyncio code react immediately.

    Examples:
        >>> token = CancellationToken()
        >>> token.cancel("superseded")
        >>> token.is_cancelled()
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation and run registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str | None = None) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise create_cancelled_error(operation, self.reason)

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` to run on cancellation.

        Runs immediately when the token is already cancelled.

        Returns:
            A function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def _remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _remove
        callback()
        return lambda: None


class CancellationTokenGroup:
    """Tokens that can be cancelled together, e.g. all in-flight sheet fetches."""

    def __init__(self) -> None:
        self._tokens: list[CancellationToken] = []
        self._lock = threading.Lock()

    def create_token(self) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            self._tokens.append(token)
        return token

    def remove_token(self, token: CancellationToken) -> None:
        with self._lock:
            if token in self._tokens:
                self._tokens.remove(token)

    def cancel_all(self, reason: str | None = None) -> None:
        with self._lock:
            tokens, self._tokens = self._tokens, []
        for token in tokens:
            token.cancel(reason)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


async def run_cancellable(
    awaitable: Awaitable[T],
    token: CancellationToken | None,
    operation: str | None = None,
) -> T:
    """Await ``awaitable``, aborting it when ``token`` is cancelled.

    Args:
        awaitable: Coroutine or future to run
        token: Optional cancellation token; ``None`` awaits directly
        operation: Operation name recorded on the raised error

    Returns:
        The awaitable's result

    Raises:
        OperationCancelledError: If the token was cancelled before or during the await
    """
    if token is None:
        return await awaitable

    if token.is_cancelled():
        # Close an unstarted coroutine so it is not reported as never awaited
        close = getattr(awaitable, "close", None)
        if close is not None:
            close()
        token.raise_if_cancelled(operation)

    task = asyncio.ensure_future(awaitable)
    loop = asyncio.get_running_loop()
    unregister = token.add_callback(lambda: loop.call_soon_threadsafe(task.cancel))
    try:
        return await task
    except asyncio.CancelledError:
        if token.is_cancelled():
            raise create_cancelled_error(operation, token.reason) from None
        raise
    finally:
        unregister()
