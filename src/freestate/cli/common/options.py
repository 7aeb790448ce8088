"""
Reusable Typer Options Module

Annotated option types shared by the main callback, so every command
sees the same flags.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer

from freestate.cli.common.context import LogLevel
from freestate.shared.constants import CLIDefaults, CLIHelp


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=CLIDefaults.VERSION))
        raise typer.Exit


VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Enable verbose output (equivalent to --log-level DEBUG).",
    ),
]

LogLevelOption = Annotated[
    LogLevel,
    typer.Option(
        "--log-level",
        case_sensitive=False,
        help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO.",
    ),
]

JsonOutputOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Enable machine-readable JSON output instead of human-readable format.",
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=CLIHelp.CONFIG_HELP,
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]

VersionOption = Annotated[
    bool,
    typer.Option(
        "--version",
        "-V",
        help=CLIHelp.VERSION_HELP,
        callback=version_callback,
        is_eager=True,
    ),
]
