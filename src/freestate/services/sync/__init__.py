"""Offline action queue replay and connectivity monitoring."""

from freestate.services.sync.coordinator import (
    ActionHandler,
    SubmitOutcome,
    SyncCoordinator,
    SyncReport,
    SyncSnapshot,
    SyncStatus,
)
from freestate.services.sync.monitor import ConnectivityMonitor

__all__ = [
    "ActionHandler",
    "ConnectivityMonitor",
    "SubmitOutcome",
    "SyncCoordinator",
    "SyncReport",
    "SyncSnapshot",
    "SyncStatus",
]
