"""Offline sync configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from freestate.shared.constants import ConnectivityConfig, NetworkConfig


class SyncSettings(BaseModel):
    """Pending action replay and connectivity monitoring."""

    auto_sync: bool = Field(
        default=True,
        description="Start a sync pass when connectivity returns",
    )
    retention_days: int = Field(
        default=7,
        ge=0,
        description="Keep processed actions this many days; 0 keeps all",
    )
    request_timeout: float = Field(
        default=NetworkConfig.SYNC_REQUEST_TIMEOUT,
        gt=0,
        description="Timeout for replaying one action over HTTP",
    )
    probe_url: str | None = Field(
        default=None,
        description="URL probed for connectivity (default: <api.base_url>/health)",
    )
    probe_interval: float = Field(
        default=ConnectivityConfig.PROBE_INTERVAL,
        gt=0,
        description="Seconds between connectivity probes",
    )
    probe_timeout: float = Field(
        default=ConnectivityConfig.PROBE_TIMEOUT,
        gt=0,
        description="Timeout for one connectivity probe",
    )
