"""Tests for sheet CSV to record parsing."""

from __future__ import annotations

import logging

import pytest

from freestate.core.record_parser import (
    coerce_sheet_type,
    is_inaccessible_sheet,
    parse_active,
    parse_records,
)
from freestate.core.records import Company, Place, Project
from freestate.shared.constants import ImageUrls, SheetType
from freestate.shared.errors import DataShapeError, ErrorCode, ParseError

COMPANIES_CSV = (
    "Company_ID,Name,Description,Image_Path,Active\n"
    "c1,Acme Homes,Family builder,https://drive.google.com/file/d/abc123/view,yes\n"
    'c2,"Bright, Co",,,no\n'
    ",Nameless,,,\n"
)

PROJECTS_CSV = (
    "Company_ID,ID_Loc,Project_Name,Key_Features\n"
    "c1,loc-1,Riverside,Pool\n"
    ",loc-2,Hillview,\n"
    "c1,,Missing Location,\n"
)


class TestParseRecords:
    """Test cases for parse_records."""

    def test_companies(self) -> None:
        # When
        records = parse_records(SheetType.COMPANIES, COMPANIES_CSV)

        # Then
        assert records == [
            Company(
                id="c1",
                name="Acme Homes",
                description="Family builder",
                image="https://drive.google.com/uc?export=view&id=abc123",
                active=True,
            ),
            Company(id="c2", name="Bright, Co", image=ImageUrls.PLACEHOLDER, active=False),
        ]

    def test_rows_missing_required_values_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="freestate.core.record_parser"):
            records = parse_records("companies", COMPANIES_CSV)

        assert [r.id for r in records] == ["c1", "c2"]
        assert "Skipped 1 companies rows" in caplog.text

    def test_project_ids_are_generated_from_row_position(self) -> None:
        records = parse_records(SheetType.PROJECTS, PROJECTS_CSV)

        assert records == [
            Project(id="c1_1", name="Riverside", description="Pool", company_id="c1", location_id="loc-1"),
            Project(id="project_2", name="Hillview", location_id="loc-2"),
        ]

    def test_places(self) -> None:
        records = parse_records(SheetType.PLACES, "ID_Loc,Name,Description\nloc-1,Old Town,Historic\n")

        assert records == [Place(id="loc-1", name="Old Town", description="Historic")]

    def test_missing_required_column_raises_parse_error(self) -> None:
        # Given a companies sheet without any id column
        text = "Name,Description\nAcme,Builder\n"

        # When
        with pytest.raises(ParseError) as exc_info:
            parse_records(SheetType.COMPANIES, text)

        # Then
        assert exc_info.value.missing_columns == ("id",)
        assert exc_info.value.code == ErrorCode.MISSING_REQUIRED_COLUMN

    @pytest.mark.parametrize("text", ["", "   \n", "Company_ID,Name\n"])
    def test_sheet_without_data_rows_is_empty(self, text: str) -> None:
        with pytest.raises(DataShapeError) as exc_info:
            parse_records(SheetType.COMPANIES, text)

        assert exc_info.value.code == ErrorCode.SHEET_EMPTY

    def test_html_page_is_not_accessible(self) -> None:
        with pytest.raises(DataShapeError) as exc_info:
            parse_records(SheetType.COMPANIES, "<!DOCTYPE html><html><body>Sign in</body></html>")

        assert exc_info.value.code == ErrorCode.SHEET_NOT_ACCESSIBLE

    def test_users_sheet_has_no_record_type(self) -> None:
        with pytest.raises(DataShapeError) as exc_info:
            parse_records(SheetType.USERS, "id,name\n1,Ann\n")

        assert exc_info.value.code == ErrorCode.INVALID_SHEET_TYPE


class TestHelpers:
    """Test cases for the parsing helpers."""

    def test_google_error_page_is_inaccessible(self) -> None:
        assert is_inaccessible_sheet("400. That's an error.\nThe server cannot process the request.")

    def test_csv_is_accessible(self) -> None:
        assert not is_inaccessible_sheet("id,name\n1,html\n")

    def test_unknown_sheet_type(self) -> None:
        with pytest.raises(DataShapeError) as exc_info:
            coerce_sheet_type("buildings")

        assert exc_info.value.code == ErrorCode.INVALID_SHEET_TYPE

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("", True), ("TRUE", True), (" yes ", True), ("1", True), ("no", False), ("inactive", False)],
    )
    def test_parse_active(self, value: str, expected: bool) -> None:
        assert parse_active(value) is expected
