"""Buffered HTTP response returned by fetch_with_retry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import orjson

from freestate.shared.constants import HTTPStatusCodes


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and fully read body of a completed request."""

    status: int
    text: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return HTTPStatusCodes.is_success(self.status)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            orjson.JSONDecodeError: If the body is not JSON
        """
        return orjson.loads(self.text)
