"""Free State Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from freestate.config.models.api_settings import APISettings
from freestate.config.models.app_settings import AppSettings, LoggingSettings
from freestate.config.models.cache_settings import CacheSettings, StoreSettings
from freestate.config.models.sync_settings import SyncSettings
from freestate.shared.constants import ConnectivityConfig, FileSystem

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Environment variables override file values, e.g.
    ``FREESTATE_API__BASE_URL`` or ``FREESTATE_SYNC__RETENTION_DAYS``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FREESTATE_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from a TOML file
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def data_dir(self) -> Path:
        return Path(self.app.data_dir).expanduser()

    @property
    def cache_db_path(self) -> Path:
        if self.cache.db_path:
            return Path(self.cache.db_path).expanduser()
        return self.data_dir / FileSystem.CACHE_DB_FILENAME

    @property
    def store_db_path(self) -> Path:
        if self.store.db_path:
            return Path(self.store.db_path).expanduser()
        return self.data_dir / FileSystem.STORE_DB_FILENAME

    @property
    def probe_url(self) -> str:
        return self.sync.probe_url or f"{self.api.base_url}{ConnectivityConfig.PROBE_PATH}"

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from TOML file with environment variable overrides."""
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        logger.debug("Loaded configuration from %s", file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode="json", exclude_none=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)
