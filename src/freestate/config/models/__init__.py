"""Configuration models."""

from freestate.config.models.api_settings import APISettings
from freestate.config.models.app_settings import AppSettings, LoggingSettings
from freestate.config.models.cache_settings import CacheSettings, StoreSettings
from freestate.config.models.settings import Settings
from freestate.config.models.sync_settings import SyncSettings

__all__ = [
    "APISettings",
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "StoreSettings",
    "SyncSettings",
]
