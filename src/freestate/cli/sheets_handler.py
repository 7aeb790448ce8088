"""Sheets command handler.

Loads one sheet through the repository and renders the records as a rich
table or a JSON envelope.
"""

from __future__ import annotations

import asyncio
import logging

from rich.console import Console
from rich.table import Table

from freestate.cli.common.container import create_container
from freestate.cli.common.context import get_cli_context
from freestate.cli.json_formatter import format_json_output, write_json_output
from freestate.containers import Container, managed_services
from freestate.core.records import DirectoryRecord
from freestate.services.sheets import LoadResult
from freestate.shared.constants import CLIDefaults, CLIMessages
from freestate.shared.errors import create_cli_error
from freestate.shared.result import Err

logger = logging.getLogger(__name__)

COMMAND = "sheets fetch"


async def _load(
    container: Container,
    sheet_type: str,
    *,
    refresh: bool,
    clear_cache: bool,
) -> LoadResult:
    async with managed_services(container):
        return await container.sheet_repository().load(
            sheet_type,
            force_refresh=refresh,
            clear_cache=clear_cache,
        )


def _records_table(sheet_type: str, records: list[DirectoryRecord]) -> Table:
    table = Table(title=sheet_type, show_lines=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Active")
    table.add_column("Image", style="dim", overflow="fold")
    for record in records:
        active = getattr(record, "active", None)
        table.add_row(
            str(record.id),
            record.name,
            "" if active is None else ("yes" if active else "no"),
            record.image,
        )
    return table


def handle_fetch_command(sheet_type: str, *, refresh: bool, clear_cache: bool) -> int:
    """Load a sheet and print its records.

    Raises:
        FreeStateError: The error behind a failed load
    """
    context = get_cli_context()
    container = create_container(context)
    result = asyncio.run(_load(container, sheet_type, refresh=refresh, clear_cache=clear_cache))

    if isinstance(result, Err):
        if result.error is not None:
            raise result.error
        raise create_cli_error(result.message, command=COMMAND)

    if context.json_output:
        write_json_output(
            format_json_output(
                success=True,
                command=COMMAND,
                data={
                    "sheet_type": sheet_type,
                    "source": result.source.value,
                    "stale": result.stale,
                    "records": [record.to_dict() for record in result.value],
                },
                warnings=[result.warning] if result.warning else None,
            )
        )
        return CLIDefaults.EXIT_SUCCESS

    console = Console()
    if result.warning:
        console.print(CLIMessages.SHEET_STALE.format(warning=result.warning))
    console.print(_records_table(sheet_type, result.value))
    console.print(
        CLIMessages.SHEET_LOADED.format(
            count=len(result.value),
            sheet_type=sheet_type,
            source=result.source.value,
        )
    )
    return CLIDefaults.EXIT_SUCCESS
