"""
System Configuration Constants

Application metadata, filesystem locations and logging defaults.
"""

from pathlib import Path


class Application:
    """Application metadata constants."""

    NAME = "Free State Directory"
    VERSION = "0.1.0"
    DESCRIPTION = "Offline-capable client for the Free State property directory"


class FileSystem:
    """Filesystem locations."""

    HOME_DIR = ".freestate"
    DEFAULT_DATA_DIR = str(Path.home() / HOME_DIR)
    CACHE_DB_FILENAME = "cache.db"
    STORE_DB_FILENAME = "free-state-offline.db"
    CONFIG_FILENAME = "config.toml"
    ENV_FILENAME = ".env"


class Logging:
    """Logging defaults."""

    DEFAULT_FILE_PATH = "logs/freestate.log"
    LOGGER_NAME = "freestate"
