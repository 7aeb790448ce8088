"""Sheet repository: cache, network and offline store behind one load call.

A load is served from the expiring cache when possible. Otherwise the
sheet is fetched, parsed and written through to the cache and the record
store. When the network fails, the last known records are returned marked
stale. A newer load for the same sheet cancels the older one still in
flight.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from freestate.core.record_parser import coerce_sheet_type, parse_records
from freestate.core.records import RECORD_TYPES, DirectoryRecord
from freestate.services.cache.expiring_cache import ExpiringCache
from freestate.services.record_store.store import RecordStore
from freestate.services.sheets.client import SheetsClient
from freestate.shared.cancellation import CancellationToken, CancellationTokenGroup
from freestate.shared.constants import (
    SHEET_CACHE_TTL,
    CacheConfig,
    SheetMessages,
    SheetType,
)
from freestate.shared.errors import (
    DataShapeError,
    ErrorCode,
    NetworkError,
    OperationCancelledError,
    StorageError,
    create_data_shape_error,
)
from freestate.shared.logging import log_operation_error, log_operation_start, log_operation_success
from freestate.shared.result import DataSource, Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)

LoadResult = Result[list[DirectoryRecord]]


def cache_key(sheet_type: SheetType) -> str:
    return CacheConfig.RECORDS_KEY_TEMPLATE.format(sheet_type=sheet_type.value)


class SheetRepository:
    """Loads typed records for a sheet with cache-first, offline-fallback semantics."""

    def __init__(
        self,
        sheets: SheetsClient,
        store: RecordStore,
        cache: ExpiringCache | None = None,
    ) -> None:
        self.sheets = sheets
        self.store = store
        self.cache = cache
        self._inflight: dict[SheetType, CancellationToken] = {}
        self._unlink: dict[CancellationToken, Callable[[], None]] = {}
        self._tokens = CancellationTokenGroup()

    def cancel_all(self, reason: str = "shutdown") -> None:
        """Cancel every load still in flight."""
        self._tokens.cancel_all(reason)
        self._inflight.clear()

    def _read_cache(self, sheet_type: SheetType) -> list[DirectoryRecord] | None:
        if self.cache is None:
            return None
        cached = self.cache.get(cache_key(sheet_type))
        if cached is None:
            return None
        record_type = RECORD_TYPES[sheet_type]
        try:
            return [record_type.from_dict(item) for item in cached]
        except TypeError as e:
            logger.warning("Discarding unreadable cached %s records: %s", sheet_type.value, e)
            self.cache.delete(cache_key(sheet_type))
            return None

    def _write_cache(self, sheet_type: SheetType, records: list[DirectoryRecord]) -> None:
        if self.cache is None:
            return
        payload: list[dict[str, Any]] = [record.to_dict() for record in records]
        self.cache.set(cache_key(sheet_type), payload, SHEET_CACHE_TTL[sheet_type])

    def _begin(self, sheet_type: SheetType, caller_token: CancellationToken | None) -> CancellationToken:
        previous = self._inflight.get(sheet_type)
        if previous is not None:
            previous.cancel("superseded by a newer load")
        token = self._tokens.create_token()
        self._inflight[sheet_type] = token
        if caller_token is not None:
            self._unlink[token] = caller_token.add_callback(
                lambda: token.cancel(caller_token.reason)
            )
        return token

    def _finish(self, sheet_type: SheetType, token: CancellationToken) -> None:
        if self._inflight.get(sheet_type) is token:
            del self._inflight[sheet_type]
        self._tokens.remove_token(token)
        unlink = self._unlink.pop(token, None)
        if unlink is not None:
            unlink()

    async def load(
        self,
        sheet_type: SheetType | str,
        *,
        force_refresh: bool = False,
        clear_cache: bool = False,
        token: CancellationToken | None = None,
    ) -> LoadResult:
        """Load the records of a sheet.

        Args:
            sheet_type: Sheet to load
            force_refresh: Skip the cache read and fetch from the network
            clear_cache: Drop the cached entry first; disables stale fallback
            token: Caller cancellation; a newer load of the same sheet also cancels

        Returns:
            Ok with records and their source, or Err with the failure class
        """
        try:
            sheet_type = coerce_sheet_type(sheet_type)
            if sheet_type not in RECORD_TYPES:
                raise create_data_shape_error(
                    f"Sheet type '{sheet_type.value}' does not map to directory records",
                    sheet_type=sheet_type.value,
                    operation="load_sheet",
                    code=ErrorCode.INVALID_SHEET_TYPE,
                )
        except DataShapeError as e:
            return Err(ErrorKind.DATA_SHAPE, e.message, e)

        if clear_cache and self.cache is not None:
            self.cache.delete(cache_key(sheet_type))

        if not force_refresh and not clear_cache:
            cached = self._read_cache(sheet_type)
            if cached is not None:
                logger.debug("Serving %s from cache", sheet_type.value)
                return Ok(cached, source=DataSource.CACHE)

        log_operation_start(logger, "load_sheet", {"sheet_type": sheet_type.value, "force_refresh": force_refresh})
        start = time.perf_counter()
        load_token = self._begin(sheet_type, token)
        try:
            text = await self.sheets.fetch_csv(sheet_type, token=load_token)
            records = parse_records(sheet_type, text)
        except OperationCancelledError as e:
            logger.info("Load of %s cancelled: %s", sheet_type.value, e.message)
            return Err(ErrorKind.CANCELLED, e.message, e)
        except DataShapeError as e:
            log_operation_error(logger=logger, error=e, operation="load_sheet")
            return Err(ErrorKind.DATA_SHAPE, e.message, e)
        except NetworkError as e:
            log_operation_error(logger=logger, error=e, operation="load_sheet", level=logging.WARNING)
            if clear_cache:
                return Err(ErrorKind.NETWORK, e.message, e)
            return await self._fallback(sheet_type, e)
        finally:
            self._finish(sheet_type, load_token)

        self._write_cache(sheet_type, records)
        try:
            await self.store.replace(sheet_type.value, records)
        except StorageError as e:
            log_operation_error(logger=logger, error=e, operation="load_sheet", level=logging.WARNING)

        log_operation_success(
            logger=logger,
            operation="load_sheet",
            duration_ms=(time.perf_counter() - start) * 1000,
            result_info={"sheet_type": sheet_type.value, "records": len(records)},
        )
        return Ok(records, source=DataSource.NETWORK)

    async def _fallback(self, sheet_type: SheetType, error: NetworkError) -> LoadResult:
        warning = SheetMessages.STALE_DATA.format(error=error.message)

        cached = self._read_cache(sheet_type)
        if cached is not None:
            return Ok(cached, source=DataSource.CACHE, stale=True, warning=warning)

        try:
            stored = await self.store.get_all(sheet_type.value)
        except StorageError as e:
            log_operation_error(logger=logger, error=e, operation="load_sheet_fallback")
            stored = []
        if stored:
            logger.info("Serving %d %s records from the offline store", len(stored), sheet_type.value)
            return Ok(stored, source=DataSource.OFFLINE_STORE, stale=True, warning=warning)

        return Err(ErrorKind.NETWORK, error.message, error)
