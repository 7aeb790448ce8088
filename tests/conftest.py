"""
Pytest configuration and shared fixtures for the directory client tests.

Fixtures wire the fakes from ``tests.fakes`` into real services so tests
run without network access or real waiting.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from freestate.config.models.api_settings import APISettings
from freestate.services.cache import ExpiringCache, MemoryKeyValueStorage
from freestate.services.http import HttpClient
from freestate.services.record_store import RecordStore
from tests.fakes import FakeClock, FakeSession, RecordingSleep

BASE_URL = "http://proxy.test/api"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def api_settings() -> APISettings:
    return APISettings(base_url=BASE_URL, max_retries=2, retry_base_delay=0.01, rate_limit_delay=0.05)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def http_client(
    api_settings: APISettings,
    fake_session: FakeSession,
    recording_sleep: RecordingSleep,
) -> HttpClient:
    return HttpClient(api_settings, session=fake_session, sleep=recording_sleep)


@pytest.fixture
def memory_cache(clock: FakeClock) -> ExpiringCache:
    return ExpiringCache(MemoryKeyValueStorage(), clock=clock)


@pytest_asyncio.fixture
async def record_store(tmp_path: Path, clock: FakeClock) -> AsyncIterator[RecordStore]:
    store = RecordStore(tmp_path / "offline.db", clock=clock)
    await store.open()
    yield store
    await store.close()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo CLI logging setup so caplog sees records in later tests."""
    yield
    package_logger = logging.getLogger("freestate")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
