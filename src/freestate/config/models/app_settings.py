"""Application and logging configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from freestate.shared.constants.system import Application, FileSystem, Logging


class AppSettings(BaseModel):
    """Application configuration."""

    name: str = Field(default=Application.NAME, description="Application name")
    version: str = Field(default=Application.VERSION, description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    data_dir: str = Field(
        default=FileSystem.DEFAULT_DATA_DIR,
        description="Directory holding the cache and record store databases",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level")
    file: str | None = Field(
        default=Logging.DEFAULT_FILE_PATH,
        description="JSON log file path (empty disables file logging)",
    )
    console_output: bool = Field(default=True, description="Enable Rich console logging")


__all__ = [
    "AppSettings",
    "LoggingSettings",
]
