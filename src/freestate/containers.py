"""Dependency Injection container for the directory client.

This module wires the services together using dependency-injector.

The container manages:
- Settings (Singleton)
- Cache storage and the expiring cache
- Record store holding offline snapshots and the pending action queue
- HTTP client, sheets client and sheet repository
- Sync coordinator and connectivity monitor
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dependency_injector import containers, providers

from freestate.config.loader import get_config
from freestate.config.models.settings import Settings
from freestate.services.cache import ExpiringCache, SQLiteKeyValueStorage
from freestate.services.http import HttpClient
from freestate.services.record_store import RecordStore
from freestate.services.sheets import SheetRepository, SheetsClient
from freestate.services.sync import ConnectivityMonitor, SyncCoordinator

logger = logging.getLogger(__name__)


def _build_cache(config: Settings, storage: SQLiteKeyValueStorage) -> ExpiringCache | None:
    if not config.cache.enabled:
        return None
    return ExpiringCache(storage, prefix=config.cache.key_prefix)


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for directory client services.

    Long-lived resources are singletons so that every consumer shares one
    database connection and one HTTP session. Open them with
    :func:`managed_services` before use.

    Example:
        >>> container = Container()
        >>> async with managed_services(container):
        ...     result = await container.sheet_repository().load("companies")
    """

    # Configuration
    config = providers.Singleton(get_config)

    # Cache services
    kv_storage = providers.Singleton(
        SQLiteKeyValueStorage,
        db_path=providers.Callable(lambda config: config.cache_db_path, config=config),
        quota_bytes=providers.Callable(lambda config: config.cache.quota_bytes, config=config),
    )

    expiring_cache = providers.Singleton(
        _build_cache,
        config=config,
        storage=kv_storage,
    )

    # Offline record store
    record_store = providers.Singleton(
        RecordStore,
        db_path=providers.Callable(lambda config: config.store_db_path, config=config),
    )

    # Network
    http_client = providers.Singleton(
        HttpClient,
        settings=providers.Callable(lambda config: config.api, config=config),
    )

    sheets_client = providers.Factory(
        SheetsClient,
        http=http_client,
        settings=providers.Callable(lambda config: config.api, config=config),
    )

    sheet_repository = providers.Singleton(
        SheetRepository,
        sheets=sheets_client,
        store=record_store,
        cache=expiring_cache,
    )

    # Offline sync
    sync_coordinator = providers.Singleton(
        SyncCoordinator,
        store=record_store,
        http=http_client,
        settings=providers.Callable(lambda config: config.sync, config=config),
    )

    connectivity_monitor = providers.Singleton(
        ConnectivityMonitor,
        coordinator=sync_coordinator,
        http=http_client,
        probe_url=providers.Callable(lambda config: config.probe_url, config=config),
        interval=providers.Callable(lambda config: config.sync.probe_interval, config=config),
        timeout=providers.Callable(lambda config: config.sync.probe_timeout, config=config),
    )


@asynccontextmanager
async def managed_services(container: Container) -> AsyncIterator[Container]:
    """Open the container's resources for the duration of the block.

    On exit in-flight loads are cancelled, the monitor is stopped, and the
    HTTP session and both databases are closed.
    """
    config = container.config()

    storage = container.kv_storage()
    store = container.record_store()
    http = container.http_client()

    storage.open()
    try:
        cache = container.expiring_cache()
        if cache is not None and config.cache.purge_expired_on_open:
            removed = cache.clear_expired()
            if removed:
                logger.debug("Purged %d expired cache entries", removed)

        await store.open()
        try:
            await http.open()
            try:
                yield container
            finally:
                container.sheet_repository().cancel_all()
                await container.connectivity_monitor().stop()
                await http.close()
        finally:
            await store.close()
    finally:
        storage.close()
