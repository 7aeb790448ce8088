"""Connectivity monitor feeding the sync coordinator.

Probes a URL on an interval. Any HTTP response, even an error status,
means the network is reachable; transport failures and timeouts mean it
is not. Only transitions are signalled to the coordinator.
"""

from __future__ import annotations

import asyncio
import logging

from freestate.services.http.client import HttpClient
from freestate.services.sync.coordinator import SyncCoordinator
from freestate.shared.constants import ConnectivityConfig
from freestate.shared.errors import HttpStatusError, NetworkError

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Periodic reachability probe."""

    def __init__(
        self,
        coordinator: SyncCoordinator,
        http: HttpClient,
        probe_url: str,
        interval: float = ConnectivityConfig.PROBE_INTERVAL,
        timeout: float = ConnectivityConfig.PROBE_TIMEOUT,
    ) -> None:
        self.coordinator = coordinator
        self.http = http
        self.probe_url = probe_url
        self.interval = interval
        self.timeout = timeout
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def probe(self) -> bool:
        """True if the probe URL answered at all."""
        try:
            await self.http.request("GET", self.probe_url, timeout=self.timeout, max_retries=0)
        except HttpStatusError:
            return True
        except NetworkError as e:
            logger.debug("Connectivity probe failed: %s", e.message)
            return False
        return True

    async def check_once(self) -> bool:
        """Probe once and signal a connectivity change to the coordinator."""
        online = await self.probe()
        if online and not self.coordinator.is_online:
            await self.coordinator.set_online()
        elif not online and self.coordinator.is_online:
            self.coordinator.set_offline()
        return online

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Connectivity monitor started for %s", self.probe_url)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Connectivity monitor stopped")
