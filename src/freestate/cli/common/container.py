"""Container construction for CLI commands."""

from __future__ import annotations

from dependency_injector import providers

from freestate.cli.common.context import CliContext, get_cli_context
from freestate.containers import Container


def create_container(context: CliContext | None = None) -> Container:
    """Build a container bound to the settings loaded by the main callback."""
    context = context or get_cli_context()
    container = Container()
    container.config.override(providers.Object(context.settings))
    return container
