"""Replay of actions queued while offline.

The coordinator tracks connectivity and drains the pending action queue
when the client is online. Actions with a URL and method are replayed over
HTTP with their data as the JSON body; other actions go to the handler
registered for their type. Each action succeeds or fails on its own: one
failure never stops the pass, and failed actions stay queued for the next
pass. At most one pass runs at a time.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from freestate.config.models.sync_settings import SyncSettings
from freestate.core.records import PendingAction
from freestate.services.http.client import HttpClient
from freestate.services.record_store.store import RecordStore
from freestate.shared.clock import Clock, now_ms
from freestate.shared.constants import BASE_DAY_MS
from freestate.shared.errors import (
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    NetworkError,
    StorageError,
)
from freestate.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

ActionHandler = Callable[[PendingAction], Awaitable[Any]]


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"


class SubmitOutcome(str, Enum):
    SENT = "sent"
    QUEUED = "queued"


@dataclass
class SyncReport:
    """Outcome of one sync pass.

    Attributes:
        skipped: True when the pass did not run (offline or already syncing)
        reason: Why the pass was skipped
        processed: Ids replayed successfully and marked processed
        failed: Id to error message for actions that failed this pass
        unhandled: Ids with no URL and no registered handler; left queued
        purged: Processed actions removed by retention compaction
        error: Pass-level failure, e.g. the queue could not be read
    """

    skipped: bool = False
    reason: str | None = None
    processed: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
    unhandled: list[int] = field(default_factory=list)
    purged: int = 0
    error: str | None = None
    started_at: int | None = None
    finished_at: int | None = None


@dataclass
class SyncSnapshot:
    """Point-in-time view of the coordinator for status displays."""

    is_online: bool
    status: SyncStatus
    pending: int
    last_sync_error: str | None
    last_synced_at: int | None
    last_online_at: int | None
    last_offline_at: int | None


class SyncCoordinator:
    """Connectivity-aware replay of the pending action queue.

    Args:
        store: Record store holding the queue
        http: HTTP client used to replay URL actions
        settings: Sync behaviour (auto sync, retention, timeouts)
        online: Initial connectivity
        clock: Epoch-millisecond clock, injectable for tests
    """

    def __init__(
        self,
        store: RecordStore,
        http: HttpClient,
        settings: SyncSettings | None = None,
        *,
        online: bool = True,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.http = http
        self.settings = settings or SyncSettings()
        self.clock = clock
        self._handlers: dict[str, ActionHandler] = {}
        self._online = online
        self._syncing = False

        self.last_sync_error: str | None = None
        self.last_report: SyncReport | None = None
        self.last_synced_at: int | None = None
        self.last_online_at: int | None = clock() if online else None
        self.last_offline_at: int | None = None if online else clock()

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def status(self) -> SyncStatus:
        return SyncStatus.SYNCING if self._syncing else SyncStatus.IDLE

    def register_handler(self, action_type: str, handler: ActionHandler) -> None:
        """Handle queued actions of ``action_type`` that carry no URL.

        The handler receives the action; a truthy result marks it processed.
        """
        self._handlers[action_type] = handler

    def set_offline(self) -> None:
        if self._online:
            logger.info("Connectivity lost; queuing actions until back online")
        self._online = False
        self.last_offline_at = self.clock()

    async def set_online(self) -> SyncReport | None:
        """Mark the client online and, with auto sync, drain the queue."""
        was_offline = not self._online
        self._online = True
        self.last_online_at = self.clock()
        if was_offline:
            logger.info("Connectivity restored")
        if self.settings.auto_sync:
            return await self.sync_now()
        return None

    async def pending_count(self) -> int:
        return await self.store.count_pending()

    async def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(
            is_online=self._online,
            status=self.status,
            pending=await self.pending_count(),
            last_sync_error=self.last_sync_error,
            last_synced_at=self.last_synced_at,
            last_online_at=self.last_online_at,
            last_offline_at=self.last_offline_at,
        )

    async def _replay(self, action: PendingAction) -> bool | None:
        """Replay one action.

        Returns:
            True/False for handled actions, None when nothing can handle it

        Raises:
            NetworkError: If the HTTP replay fails
        """
        if action.is_http:
            await self.http.request(
                action.method or "POST",
                action.url or "",
                json=action.data,
                timeout=self.settings.request_timeout,
                max_retries=0,
            )
            return True

        handler = self._handlers.get(action.type)
        if handler is None:
            return None
        return bool(await handler(action))

    async def sync_now(self) -> SyncReport:
        """Run one sync pass over the unprocessed queue.

        A call while offline or while another pass runs is a no-op and
        returns a skipped report.
        """
        if not self._online:
            return SyncReport(skipped=True, reason="offline")
        if self._syncing:
            return SyncReport(skipped=True, reason="already syncing")

        # Set before the first await so concurrent calls see the pass
        self._syncing = True
        report = SyncReport(started_at=self.clock())
        start = time.perf_counter()
        try:
            await self._run_pass(report)
        finally:
            self._syncing = False
            report.finished_at = self.clock()
            self.last_report = report

        if report.error is None:
            self.last_sync_error = None
            self.last_synced_at = report.finished_at
        log_operation_success(
            logger=logger,
            operation="sync_pass",
            duration_ms=(time.perf_counter() - start) * 1000,
            result_info={
                "processed": len(report.processed),
                "failed": len(report.failed),
                "unhandled": len(report.unhandled),
                "purged": report.purged,
            },
        )
        return report

    async def _run_pass(self, report: SyncReport) -> None:
        try:
            actions = await self.store.get_pending_actions(unprocessed_only=True)
        except StorageError as e:
            report.error = self.last_sync_error = e.message
            log_operation_error(logger=logger, error=e, operation="sync_pass")
            return

        for action in actions:
            if not self._online:
                logger.info("Went offline mid-pass; remaining actions stay queued")
                break
            await self._process_action(action, report)

        await self._compact(report)

    async def _process_action(self, action: PendingAction, report: SyncReport) -> None:
        try:
            handled = await self._replay(action)
        except NetworkError as e:
            report.failed[action.id] = e.message
            log_operation_error(
                logger=logger,
                error=e,
                operation="sync_action",
                additional_context={"action_id": action.id, "action_type": action.type},
                level=logging.WARNING,
            )
            return
        except Exception as e:  # noqa: BLE001
            # Handlers are caller code; one failing handler must not end the pass
            error = InfrastructureError(
                ErrorCode.SYNC_ACTION_FAILED,
                f"Handler for '{action.type}' failed: {e}",
                ErrorContext(
                    operation="sync_action",
                    additional_data={"action_id": action.id, "action_type": action.type},
                ),
                e,
            )
            report.failed[action.id] = error.message
            log_operation_error(logger=logger, error=error, operation="sync_action")
            return

        if handled is None:
            report.unhandled.append(action.id)
            logger.warning("No handler for pending action %d of type '%s'", action.id, action.type)
            return
        if not handled:
            report.failed[action.id] = f"Handler for '{action.type}' reported failure"
            return

        try:
            await self.store.mark_action_processed(action.id)
        except StorageError as e:
            report.failed[action.id] = e.message
            return
        report.processed.append(action.id)

    async def _compact(self, report: SyncReport) -> None:
        if self.settings.retention_days <= 0:
            return
        cutoff = self.clock() - self.settings.retention_days * BASE_DAY_MS
        try:
            report.purged = await self.store.purge_processed_actions(cutoff)
        except StorageError as e:
            log_operation_error(logger=logger, error=e, operation="compact_actions", level=logging.WARNING)

    async def submit(
        self,
        action_type: str,
        data: Any = None,
        url: str | None = None,
        method: str = "POST",
    ) -> SubmitOutcome:
        """Send an action now if online, otherwise queue it for the next pass.

        An immediate attempt that fails for network reasons is queued too.
        """
        if self._online:
            action = PendingAction(
                id=0,
                type=action_type,
                data=data,
                url=url,
                method=method.upper() if url else None,
                timestamp=self.clock(),
            )
            try:
                if await self._replay(action):
                    return SubmitOutcome.SENT
            except NetworkError as e:
                logger.info("Immediate send of '%s' failed, queuing: %s", action_type, e.message)

        await self.store.add_pending_action(
            action_type,
            data,
            url=url,
            method=method if url else None,
        )
        return SubmitOutcome.QUEUED
