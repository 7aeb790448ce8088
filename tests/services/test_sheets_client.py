"""Tests for the sheet proxy client."""

from __future__ import annotations

import pytest

from freestate.services.http import HttpClient
from freestate.services.sheets import SheetsClient
from freestate.shared.constants import SheetMessages
from freestate.shared.errors import DataShapeError, ErrorCode, HttpStatusError
from tests.fakes import FakeResponse, FakeSession


@pytest.fixture
def sheets(http_client: HttpClient) -> SheetsClient:
    return SheetsClient(http_client)


class TestSheetsClient:
    """Test cases for SheetsClient."""

    def test_sheet_url(self, sheets: SheetsClient) -> None:
        assert sheets.sheet_url("companies") == "http://proxy.test/api/sheets/companies?format=csv"
        assert sheets.sheet_url("places", "tq") == "http://proxy.test/api/sheets/places?format=tq"

    def test_image_url(self, sheets: SheetsClient) -> None:
        assert sheets.image_url("abc") == "http://proxy.test/api/image?fileId=abc"

    def test_unknown_sheet_type(self, sheets: SheetsClient) -> None:
        with pytest.raises(DataShapeError):
            sheets.sheet_url("buildings")

    @pytest.mark.asyncio
    async def test_fetch_csv(self, sheets: SheetsClient, fake_session: FakeSession) -> None:
        fake_session.queue(FakeResponse(200, "id,name\nc1,Acme\n"))

        text = await sheets.fetch_csv("companies")

        assert text == "id,name\nc1,Acme\n"
        assert fake_session.calls[0]["url"] == "http://proxy.test/api/sheets/companies?format=csv"

    @pytest.mark.asyncio
    async def test_proxy_error_text_is_used(self, sheets: SheetsClient, fake_session: FakeSession) -> None:
        # Given the proxy reports its own error body
        fake_session.queue(FakeResponse(400, '{"success": false, "error": "Invalid sheet type"}'))

        # When
        with pytest.raises(HttpStatusError) as exc_info:
            await sheets.fetch_csv("companies")

        # Then
        assert exc_info.value.message == "Invalid sheet type"
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "message", "code"),
        [
            (403, SheetMessages.ACCESS_DENIED, ErrorCode.API_ACCESS_DENIED),
            (503, SheetMessages.SERVER, ErrorCode.API_SERVER_ERROR),
        ],
    )
    async def test_status_messages(
        self,
        sheets: SheetsClient,
        fake_session: FakeSession,
        status: int,
        message: str,
        code: ErrorCode,
    ) -> None:
        fake_session.queue(FakeResponse(status, "<html>nope</html>"))

        with pytest.raises(HttpStatusError) as exc_info:
            await sheets.fetch_csv("projects")

        assert exc_info.value.message == message
        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_html_login_page(self, sheets: SheetsClient, fake_session: FakeSession) -> None:
        fake_session.queue(FakeResponse(200, "<html><title>Sign in</title></html>"))

        with pytest.raises(DataShapeError) as exc_info:
            await sheets.fetch_csv("companies")

        assert exc_info.value.code == ErrorCode.SHEET_NOT_ACCESSIBLE
        assert exc_info.value.message == SheetMessages.NOT_ACCESSIBLE

    @pytest.mark.asyncio
    async def test_empty_body(self, sheets: SheetsClient, fake_session: FakeSession) -> None:
        fake_session.queue(FakeResponse(200, "  \n"))

        with pytest.raises(DataShapeError) as exc_info:
            await sheets.fetch_csv("companies")

        assert exc_info.value.code == ErrorCode.SHEET_EMPTY
