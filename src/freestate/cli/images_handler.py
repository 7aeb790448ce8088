"""Images command handler."""

from __future__ import annotations

from rich.console import Console

from freestate.cli.common.context import get_cli_context
from freestate.cli.json_formatter import format_json_output, write_json_output
from freestate.core.images import (
    direct_image_url,
    extract_drive_file_id,
    is_known_image_url,
    proxy_image_url,
)
from freestate.shared.constants import CLIDefaults, ImageUrls


def handle_resolve_command(url: str) -> int:
    context = get_cli_context()
    resolved = direct_image_url(url)
    file_id = extract_drive_file_id(url)

    if context.json_output:
        write_json_output(
            format_json_output(
                success=resolved != ImageUrls.INVALID,
                command="images resolve",
                data={
                    "input": url,
                    "url": resolved,
                    "file_id": file_id,
                    "known_image": is_known_image_url(resolved),
                    "proxy_url": proxy_image_url(context.settings.api.base_url, file_id) if file_id else None,
                },
            )
        )
    else:
        Console().print(resolved, soft_wrap=True)
    return CLIDefaults.EXIT_SUCCESS
