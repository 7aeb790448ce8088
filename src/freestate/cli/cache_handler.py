"""Cache command handlers."""

from __future__ import annotations

import asyncio
from dataclasses import asdict

from rich.console import Console
from rich.table import Table

from freestate.cli.common.container import create_container
from freestate.cli.common.context import get_cli_context
from freestate.cli.json_formatter import format_json_output, write_json_output
from freestate.containers import Container, managed_services
from freestate.services.cache import CacheStats, ExpiringCache
from freestate.shared.constants import CLIDefaults, CLIMessages
from freestate.shared.errors import ErrorCode, create_cli_error


def _require_cache(container: Container, command: str) -> ExpiringCache:
    cache = container.expiring_cache()
    if cache is None:
        raise create_cli_error(
            "Cache is disabled in the configuration",
            command=command,
            code=ErrorCode.CONFIG_ERROR,
        )
    return cache


async def _stats(container: Container) -> CacheStats:
    async with managed_services(container):
        return _require_cache(container, "cache stats").stats()


async def _clear(container: Container, *, expired_only: bool) -> int:
    async with managed_services(container):
        cache = _require_cache(container, "cache clear")
        return cache.clear_expired() if expired_only else cache.clear_all()


def handle_stats_command() -> int:
    context = get_cli_context()
    stats = asyncio.run(_stats(create_container(context)))

    if context.json_output:
        write_json_output(format_json_output(success=True, command="cache stats", data=asdict(stats)))
        return CLIDefaults.EXIT_SUCCESS

    table = Table(title="Cache", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in asdict(stats).items():
        table.add_row(name.replace("_", " "), str(value))
    Console().print(table)
    return CLIDefaults.EXIT_SUCCESS


def handle_clear_command(*, expired_only: bool) -> int:
    context = get_cli_context()
    removed = asyncio.run(_clear(create_container(context), expired_only=expired_only))

    if context.json_output:
        write_json_output(
            format_json_output(
                success=True,
                command="cache clear",
                data={"removed": removed, "expired_only": expired_only},
            )
        )
    else:
        Console().print(CLIMessages.CACHE_CLEARED.format(count=removed))
    return CLIDefaults.EXIT_SUCCESS
