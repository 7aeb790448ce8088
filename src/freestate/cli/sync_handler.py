"""Sync command handlers: status, run and queue."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any

import orjson
from rich.console import Console
from rich.table import Table

from freestate.cli.common.container import create_container
from freestate.cli.common.context import get_cli_context
from freestate.cli.json_formatter import format_json_output, write_json_output
from freestate.containers import Container, managed_services
from freestate.services.sync import SyncReport, SyncSnapshot
from freestate.shared.constants import CLIDefaults, CLIMessages
from freestate.shared.errors import ErrorCode, create_cli_error

logger = logging.getLogger(__name__)


def parse_action_data(raw: str | None) -> Any:
    """Decode the ``--data`` option.

    Raises:
        CliError: If the value is not valid JSON
    """
    if raw is None:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise create_cli_error(
            CLIMessages.INVALID_JSON.format(error=e),
            command="sync queue",
            original_error=e,
            code=ErrorCode.CLI_INVALID_ARGUMENTS,
            exit_code=2,
        ) from e


async def _status(container: Container, *, probe: bool) -> SyncSnapshot:
    async with managed_services(container):
        if probe:
            await container.connectivity_monitor().check_once()
        return await container.sync_coordinator().snapshot()


async def _run(container: Container) -> SyncReport:
    async with managed_services(container):
        await container.connectivity_monitor().check_once()
        return await container.sync_coordinator().sync_now()


async def _queue(
    container: Container,
    action_type: str,
    data: Any,
    url: str | None,
    method: str,
) -> int:
    async with managed_services(container):
        return await container.record_store().add_pending_action(
            action_type,
            data,
            url=url,
            method=method.upper() if url else None,
        )


def handle_status_command(*, probe: bool) -> int:
    context = get_cli_context()
    snapshot = asyncio.run(_status(create_container(context), probe=probe))

    if context.json_output:
        write_json_output(format_json_output(success=True, command="sync status", data=asdict(snapshot)))
        return CLIDefaults.EXIT_SUCCESS

    table = Table(title="Sync", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("online", "[green]yes[/green]" if snapshot.is_online else "[red]no[/red]")
    table.add_row("status", snapshot.status.value)
    table.add_row("pending", str(snapshot.pending))
    table.add_row("last error", snapshot.last_sync_error or "-")
    Console().print(table)
    return CLIDefaults.EXIT_SUCCESS


def handle_run_command() -> int:
    context = get_cli_context()
    report = asyncio.run(_run(create_container(context)))
    exit_code = CLIDefaults.EXIT_ERROR if report.error else CLIDefaults.EXIT_SUCCESS

    if context.json_output:
        write_json_output(
            format_json_output(
                success=report.error is None,
                command="sync run",
                data=asdict(report),
                errors=[report.error] if report.error else None,
            )
        )
        return exit_code

    console = Console()
    if report.skipped:
        console.print(CLIMessages.SYNC_SKIPPED.format(reason=report.reason))
        return exit_code
    if report.error:
        console.print(f"[red]{report.error}[/red]")
        return exit_code
    console.print(
        CLIMessages.SYNC_DONE.format(
            processed=len(report.processed),
            failed=len(report.failed),
            unhandled=len(report.unhandled),
        )
    )
    for action_id, message in report.failed.items():
        console.print(f"  [yellow]{action_id}[/yellow]: {message}")
    return exit_code


def handle_queue_command(
    action_type: str,
    *,
    data: str | None,
    url: str | None,
    method: str,
) -> int:
    context = get_cli_context()
    payload = parse_action_data(data)
    action_id = asyncio.run(_queue(create_container(context), action_type, payload, url, method))

    if context.json_output:
        write_json_output(
            format_json_output(
                success=True,
                command="sync queue",
                data={"id": action_id, "type": action_type},
            )
        )
    else:
        Console().print(CLIMessages.ACTION_QUEUED.format(action_id=action_id, action_type=action_type))
    return CLIDefaults.EXIT_SUCCESS
