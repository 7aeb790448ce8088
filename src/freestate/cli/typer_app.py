"""
Free State Typer CLI Application

Entry point of the ``freestate`` command. The main callback loads the
settings, configures logging and stores the CLI context; each command
delegates to its handler module and converts failures to exit codes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Optional

import typer

from freestate.cli.cache_handler import handle_clear_command, handle_stats_command
from freestate.cli.common.context import CliContext, LogLevel, get_cli_context, set_cli_context
from freestate.cli.common.error_handler import handle_cli_error
from freestate.cli.common.options import (
    ConfigOption,
    JsonOutputOption,
    LogLevelOption,
    VerboseOption,
    VersionOption,
)
from freestate.cli.images_handler import handle_resolve_command
from freestate.cli.sheets_handler import handle_fetch_command
from freestate.cli.sync_handler import (
    handle_queue_command,
    handle_run_command,
    handle_status_command,
)
from freestate.config.loader import get_config, reload_config
from freestate.shared.constants import CLIDefaults, CLIHelp, Logging, SheetType
from freestate.shared.logging import setup_structured_logger

app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    add_completion=True,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)
sheets_app = typer.Typer(help=CLIHelp.SHEETS_HELP, no_args_is_help=True)
cache_app = typer.Typer(help=CLIHelp.CACHE_HELP, no_args_is_help=True)
sync_app = typer.Typer(help=CLIHelp.SYNC_HELP, no_args_is_help=True)
images_app = typer.Typer(help=CLIHelp.IMAGES_HELP, no_args_is_help=True)

app.add_typer(sheets_app, name="sheets")
app.add_typer(cache_app, name="cache")
app.add_typer(sync_app, name="sync")
app.add_typer(images_app, name="images")


@app.callback()
def main(
    verbose: VerboseOption = 0,
    log_level: LogLevelOption = LogLevel.INFO,
    json_output: JsonOutputOption = False,
    config: ConfigOption = None,
    version: VersionOption = False,
) -> None:
    """Main CLI callback with error handling."""
    try:
        settings = reload_config(config) if config is not None else get_config()
        context = CliContext(
            verbose=verbose,
            log_level=log_level,
            json_output=json_output,
            settings=settings,
        )
        setup_structured_logger(
            name=Logging.LOGGER_NAME,
            level=context.get_effective_log_level(),
            log_file=settings.logging.file or None,
            use_rich_console=settings.logging.console_output,
        )
        set_cli_context(context)
    except Exception as e:
        exit_code = handle_cli_error(e, "main-callback", json_output=json_output)
        raise typer.Exit(exit_code) from e


def _run(command: str, handler: Callable[[], int]) -> None:
    """Run a handler, mapping its failures to an exit code."""
    try:
        exit_code = handler()
    except (Exception, KeyboardInterrupt) as e:
        exit_code = handle_cli_error(e, command, json_output=get_cli_context().json_output)
        raise typer.Exit(exit_code) from e
    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@sheets_app.command("fetch", help=CLIHelp.SHEETS_FETCH_HELP)
def sheets_fetch(
    sheet_type: Annotated[SheetType, typer.Argument(case_sensitive=False, help="Sheet to load")],
    refresh: Annotated[bool, typer.Option("--refresh", help=CLIHelp.REFRESH_HELP)] = False,
    clear_cache: Annotated[bool, typer.Option("--clear-cache", help=CLIHelp.CLEAR_CACHE_HELP)] = False,
) -> None:
    """Load the records of one sheet.

    Examples:
        freestate sheets fetch companies
        freestate --json sheets fetch projects --refresh
    """
    _run(
        "sheets fetch",
        lambda: handle_fetch_command(sheet_type.value, refresh=refresh, clear_cache=clear_cache),
    )


@cache_app.command("stats", help=CLIHelp.CACHE_STATS_HELP)
def cache_stats() -> None:
    _run("cache stats", handle_stats_command)


@cache_app.command("clear", help=CLIHelp.CACHE_CLEAR_HELP)
def cache_clear(
    expired_only: Annotated[bool, typer.Option("--expired-only", help=CLIHelp.EXPIRED_ONLY_HELP)] = False,
) -> None:
    _run("cache clear", lambda: handle_clear_command(expired_only=expired_only))


@sync_app.command("status", help=CLIHelp.SYNC_STATUS_HELP)
def sync_status(
    probe: Annotated[bool, typer.Option("--probe/--no-probe", help="Probe connectivity first.")] = True,
) -> None:
    _run("sync status", lambda: handle_status_command(probe=probe))


@sync_app.command("run", help=CLIHelp.SYNC_RUN_HELP)
def sync_run() -> None:
    _run("sync run", handle_run_command)


@sync_app.command("queue", help=CLIHelp.SYNC_QUEUE_HELP)
def sync_queue(
    action_type: Annotated[str, typer.Argument(help="Action type")],
    data: Annotated[Optional[str], typer.Option("--data", help=CLIHelp.SYNC_DATA_HELP)] = None,
    url: Annotated[Optional[str], typer.Option("--url", help=CLIHelp.SYNC_URL_HELP)] = None,
    method: Annotated[str, typer.Option("--method", help=CLIHelp.SYNC_METHOD_HELP)] = "POST",
) -> None:
    """Queue an action for the next sync pass.

    Examples:
        freestate sync queue favorite --data '{"id": 3}'
        freestate sync queue inquiry --url http://localhost:3001/api/inquiries --data '{"name": "A"}'
    """
    _run(
        "sync queue",
        lambda: handle_queue_command(action_type, data=data, url=url, method=method),
    )


@images_app.command("resolve", help=CLIHelp.IMAGES_RESOLVE_HELP)
def images_resolve(url: Annotated[str, typer.Argument(help="Image link or Drive file id")]) -> None:
    _run("images resolve", lambda: handle_resolve_command(url))


if __name__ == "__main__":
    app()
