"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe cached Settings instance for the CLI
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import toml
from dotenv import load_dotenv
from pydantic import ValidationError

from freestate.config.models.settings import Settings
from freestate.shared.constants import FileSystem
from freestate.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)


def default_config_paths() -> list[Path]:
    """Config file locations, searched in order."""
    return [
        Path("config") / FileSystem.CONFIG_FILENAME,
        Path(FileSystem.CONFIG_FILENAME),
        Path.home() / FileSystem.HOME_DIR / FileSystem.CONFIG_FILENAME,
    ]


def _load_env_file(env_file: Path | None = None) -> None:
    """Load variables from a .env file if one exists.

    Variables already present in the environment win.
    """
    env_file = env_file or Path(FileSystem.ENV_FILENAME)
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. If None, the default
            locations are tried before falling back to environment only.

    Returns:
        Settings instance loaded from the selected source

    Raises:
        ApplicationError: If the file cannot be parsed or fails validation
    """
    _load_env_file()

    if config_path is not None:
        candidates = [Path(config_path)]
    else:
        candidates = [path for path in default_config_paths() if path.exists()]

    for path in candidates:
        try:
            return Settings.from_toml_file(path)
        except FileNotFoundError as e:
            raise ApplicationError(
                code=ErrorCode.MISSING_CONFIG,
                message=str(e),
                context=ErrorContext(operation="load_settings", file_path=str(path)),
                original_error=e,
            ) from e
        except (toml.TomlDecodeError, ValidationError) as e:
            raise ApplicationError(
                code=ErrorCode.INVALID_CONFIG,
                message=f"Invalid configuration in {path}: {e}",
                context=ErrorContext(operation="load_settings", file_path=str(path)),
                original_error=e,
            ) from e

    try:
        return Settings()
    except ValidationError as e:
        raise ApplicationError(
            code=ErrorCode.INVALID_CONFIG,
            message=f"Invalid configuration in environment: {e}",
            context=ErrorContext(operation="load_settings"),
            original_error=e,
        ) from e


class SettingsLoader:
    """Thread-safe cache of the loaded Settings.

    Uses double-checked locking so repeated lookups skip the lock.
    """

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._config_path: Path | None = None
        self._lock = threading.RLock()

    def get_config(self) -> Settings:
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings(self._config_path)
        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        with self._lock:
            if config_path is not None:
                self._config_path = Path(config_path)
            self._instance = load_settings(self._config_path)
        return self._instance


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the cached settings instance, loading it if necessary."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload settings, optionally switching to a different config file."""
    return _loader.reload_config(config_path)
