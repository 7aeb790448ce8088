"""Configuration package."""

from freestate.config.loader import get_config, load_settings, reload_config
from freestate.config.models import Settings

__all__ = ["Settings", "get_config", "load_settings", "reload_config"]
