"""Tests for the connectivity monitor."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest

from freestate.config.models.sync_settings import SyncSettings
from freestate.services.http import HttpClient
from freestate.services.record_store import RecordStore
from freestate.services.sync import ConnectivityMonitor, SyncCoordinator
from tests.fakes import FakeClock, FakeResponse, FakeSession

PROBE_URL = "http://proxy.test/api/health"


@pytest.fixture
def coordinator(record_store: RecordStore, http_client: HttpClient, clock: FakeClock) -> SyncCoordinator:
    return SyncCoordinator(record_store, http_client, SyncSettings(), clock=clock)


@pytest.fixture
def monitor(coordinator: SyncCoordinator, http_client: HttpClient) -> ConnectivityMonitor:
    return ConnectivityMonitor(coordinator, http_client, PROBE_URL, interval=0.01, timeout=1.0)


class TestProbe:
    """Test cases for ConnectivityMonitor.probe."""

    @pytest.mark.asyncio
    async def test_success_is_online(self, monitor: ConnectivityMonitor, fake_session: FakeSession) -> None:
        fake_session.queue(FakeResponse(204))

        assert await monitor.probe() is True
        assert fake_session.calls[0]["url"] == PROBE_URL

    @pytest.mark.asyncio
    async def test_error_status_is_still_online(
        self, monitor: ConnectivityMonitor, fake_session: FakeSession
    ) -> None:
        # Given a server that answers with 503
        fake_session.queue(FakeResponse(503, "maintenance"))

        # When/Then the network itself is reachable
        assert await monitor.probe() is True
        assert len(fake_session.calls) == 1

    @pytest.mark.asyncio
    async def test_transport_failure_is_offline(
        self, monitor: ConnectivityMonitor, fake_session: FakeSession
    ) -> None:
        fake_session.queue(aiohttp.ClientConnectionError("no route"))

        assert await monitor.probe() is False


class TestCheckOnce:
    """Test cases for connectivity transitions."""

    @pytest.mark.asyncio
    async def test_transitions_reach_the_coordinator(
        self,
        monitor: ConnectivityMonitor,
        coordinator: SyncCoordinator,
        fake_session: FakeSession,
        mocker,
    ) -> None:
        sync_spy = mocker.spy(coordinator, "sync_now")

        # Given the network drops
        fake_session.queue(aiohttp.ClientConnectionError("no route"))
        assert await monitor.check_once() is False
        assert coordinator.is_online is False

        # When it comes back
        fake_session.queue(FakeResponse(200))
        assert await monitor.check_once() is True

        # Then the coordinator is online and a pass ran
        assert coordinator.is_online is True
        assert sync_spy.call_count == 1

    @pytest.mark.asyncio
    async def test_steady_state_does_not_resignal(
        self,
        monitor: ConnectivityMonitor,
        coordinator: SyncCoordinator,
        fake_session: FakeSession,
        mocker,
    ) -> None:
        set_online = mocker.spy(coordinator, "set_online")
        fake_session.queue(FakeResponse(200))

        await monitor.check_once()
        await monitor.check_once()

        assert set_online.call_count == 0


class TestLifecycle:
    """Test cases for start/stop."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, monitor: ConnectivityMonitor, fake_session: FakeSession) -> None:
        fake_session.queue(FakeResponse(200))

        monitor.start()
        monitor.start()
        assert monitor.is_running
        await asyncio.sleep(0.05)
        await monitor.stop()

        assert not monitor.is_running
        assert len(fake_session.calls) >= 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self, monitor: ConnectivityMonitor) -> None:
        await monitor.stop()

        assert not monitor.is_running
