"""
CLI Context Management Module

Global CLI state for the running command, held in a ContextVar and set by
the main callback before any command runs.
"""

from __future__ import annotations

import contextvars
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from freestate.config.models.settings import Settings


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        verbose: Verbosity level (0 = normal, 1+ = verbose)
        log_level: Logging level
        json_output: Whether to output in JSON format
        settings: Settings loaded for this invocation
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    verbose: int = Field(default=0, ge=0)
    log_level: LogLevel = Field(default=LogLevel.INFO)
    json_output: bool = Field(default=False)
    settings: Settings = Field(default_factory=Settings)

    def is_verbose(self) -> bool:
        return self.verbose > 0

    def get_effective_log_level(self) -> str:
        """Log level after the verbose override; verbose forces DEBUG."""
        if self.is_verbose():
            return LogLevel.DEBUG.value
        return self.log_level.value


cli_context_var: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "cli_context",
    default=None,
)


def get_cli_context() -> CliContext:
    """
    Get the current CLI context.

    Raises:
        RuntimeError: If the main callback has not set a context
    """
    context = cli_context_var.get()
    if context is None:
        raise RuntimeError(
            "CLI context has not been initialized. "
            "Make sure to call the main callback before accessing context.",
        )
    return context


def set_cli_context(context: CliContext) -> None:
    cli_context_var.set(context)
