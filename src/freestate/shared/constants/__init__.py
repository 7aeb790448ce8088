"""
Free State Constants Module

Centralized constants for the directory client. Magic values used by
more than one module are defined here.
"""

from .cache import (
    BASE_DAY_MS,
    BASE_HOUR_MS,
    BASE_MINUTE_MS,
    BASE_SECOND_MS,
    CacheConfig,
    CacheDuration,
)
from .http_codes import ContentTypes, HTTPHeaders, HTTPStatusCodes
from .network import ConnectivityConfig, NetworkConfig
from .cli import CLIDefaults, CLIHelp, CLIMessages
from .system import Application, FileSystem, Logging
from .sheets import (
    ACTIVE_TRUE_VALUES,
    RECORD_SHEET_TYPES,
    REQUIRED_COLUMNS,
    SHEET_CACHE_TTL,
    ColumnSynonyms,
    ImageUrls,
    SheetFormat,
    SheetMessages,
    SheetType,
    StoreName,
)

__all__ = [
    "ACTIVE_TRUE_VALUES",
    "Application",
    "CLIDefaults",
    "CLIHelp",
    "CLIMessages",
    "FileSystem",
    "Logging",
    "BASE_DAY_MS",
    "BASE_HOUR_MS",
    "BASE_MINUTE_MS",
    "BASE_SECOND_MS",
    "RECORD_SHEET_TYPES",
    "REQUIRED_COLUMNS",
    "SHEET_CACHE_TTL",
    "CacheConfig",
    "CacheDuration",
    "ColumnSynonyms",
    "ConnectivityConfig",
    "ContentTypes",
    "HTTPHeaders",
    "HTTPStatusCodes",
    "ImageUrls",
    "NetworkConfig",
    "SheetFormat",
    "SheetMessages",
    "SheetType",
    "StoreName",
]
