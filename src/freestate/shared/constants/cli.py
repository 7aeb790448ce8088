"""
CLI Constants

Command names, help text and exit codes for the ``freestate`` command.
"""

from typing import Literal

from .system import Application


class CLIDefaults:
    """CLI default values."""

    VERSION = Application.VERSION

    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
    EXIT_INTERRUPTED = 130


class CLIHelp:
    """CLI help text and descriptions."""

    VERSION_HELP = "Print version information and exit."
    VERSION_TEXT = "freestate v{version}"

    APP_NAME = "freestate"
    APP_DESCRIPTION = Application.DESCRIPTION
    APP_STYLE: Literal["rich"] = "rich"

    SHEETS_HELP = "Load directory sheets through the cache and offline store."
    SHEETS_FETCH_HELP = "Load the records of one sheet."
    REFRESH_HELP = "Skip the cache and fetch from the network."
    CLEAR_CACHE_HELP = "Drop the cached entry first; no stale fallback."

    CACHE_HELP = "Inspect and clear the expiring cache."
    CACHE_STATS_HELP = "Show cache entry counts and size."
    CACHE_CLEAR_HELP = "Remove cache entries."
    EXPIRED_ONLY_HELP = "Only remove expired and corrupted entries."

    SYNC_HELP = "Inspect and replay the offline action queue."
    SYNC_STATUS_HELP = "Show connectivity and pending action count."
    SYNC_RUN_HELP = "Probe connectivity and run one sync pass."
    SYNC_QUEUE_HELP = "Queue an action for the next sync pass."
    SYNC_DATA_HELP = "JSON payload of the action."
    SYNC_URL_HELP = "URL to replay the action against."
    SYNC_METHOD_HELP = "HTTP method used when replaying."

    IMAGES_HELP = "Image URL helpers."
    IMAGES_RESOLVE_HELP = "Print the directly loadable URL for an image link."

    CONFIG_HELP = "Path to a TOML configuration file."


class CLIMessages:
    """Human readable CLI output."""

    SHEET_LOADED = "Loaded {count} {sheet_type} records from {source}"
    SHEET_STALE = "[yellow]{warning}[/yellow]"
    CACHE_CLEARED = "Removed {count} cache entries"
    ACTION_QUEUED = "Queued action {action_id} ({action_type})"
    SYNC_SKIPPED = "Sync skipped: {reason}"
    SYNC_DONE = "Sync finished: {processed} processed, {failed} failed, {unhandled} unhandled"
    INVALID_JSON = "Invalid JSON for --data: {error}"
