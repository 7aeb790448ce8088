"""Client for the sheet proxy endpoint ``GET {base_url}/sheets/{type}``.

The proxy answers with CSV text on success and ``{success: false, error}``
JSON on failure. A sheet that is not shared publicly comes back as an HTML
login page or Google's "400. That's an error" page rather than an error
status, so the body is checked as well as the status.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import orjson

from freestate.config.models.api_settings import APISettings
from freestate.core.images import proxy_image_url
from freestate.core.record_parser import coerce_sheet_type, is_inaccessible_sheet
from freestate.services.http.client import HttpClient
from freestate.shared.cancellation import CancellationToken
from freestate.shared.constants import HTTPStatusCodes, SheetFormat, SheetMessages, SheetType
from freestate.shared.errors import (
    ErrorCode,
    HttpStatusError,
    create_data_shape_error,
    create_http_status_error,
)
from freestate.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


def _proxy_error_message(error: HttpStatusError) -> str:
    """Message for a failed proxy response, preferring the proxy's own error text."""
    if error.body:
        try:
            payload = orjson.loads(error.body)
        except orjson.JSONDecodeError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
    if error.status == HTTPStatusCodes.FORBIDDEN:
        return SheetMessages.ACCESS_DENIED
    if HTTPStatusCodes.is_server_error(error.status):
        return SheetMessages.SERVER
    return error.message


class SheetsClient:
    """Fetches raw sheet exports through the backend proxy."""

    def __init__(self, http: HttpClient, settings: APISettings | None = None) -> None:
        self.http = http
        self.settings = settings or http.settings

    def sheet_url(self, sheet_type: SheetType | str, fmt: SheetFormat | str | None = None) -> str:
        sheet_type = coerce_sheet_type(sheet_type)
        fmt = SheetFormat(fmt or self.settings.sheet_format)
        return f"{self.settings.base_url}/sheets/{quote(sheet_type.value)}?format={fmt.value}"

    def image_url(self, file_id: str | None) -> str:
        return proxy_image_url(self.settings.base_url, file_id)

    async def fetch_csv(
        self,
        sheet_type: SheetType | str,
        fmt: SheetFormat | str | None = None,
        token: CancellationToken | None = None,
    ) -> str:
        """Fetch the raw CSV export of a sheet.

        Raises:
            DataShapeError: For unknown sheet types, empty exports or HTML pages
            HttpStatusError: For non-2xx proxy responses, carrying the proxy's message
            NetworkError: For transport failures and timeouts
            OperationCancelledError: If the token fires
        """
        sheet_type = coerce_sheet_type(sheet_type)
        url = self.sheet_url(sheet_type, fmt)

        try:
            response = await self.http.get(url, token=token)
        except HttpStatusError as e:
            error = create_http_status_error(
                e.status,
                _proxy_error_message(e),
                url=url,
                operation="fetch_sheet",
                body=e.body,
            )
            log_operation_error(
                logger=logger,
                error=error,
                operation="fetch_sheet",
                additional_context={"sheet_type": sheet_type.value},
                level=logging.WARNING,
            )
            raise error from e

        text = response.text
        if not text or not text.strip():
            raise create_data_shape_error(
                SheetMessages.EMPTY,
                sheet_type=sheet_type.value,
                operation="fetch_sheet",
                code=ErrorCode.SHEET_EMPTY,
            )
        if is_inaccessible_sheet(text):
            raise create_data_shape_error(
                SheetMessages.NOT_ACCESSIBLE,
                sheet_type=sheet_type.value,
                operation="fetch_sheet",
                code=ErrorCode.SHEET_NOT_ACCESSIBLE,
            )
        return text
