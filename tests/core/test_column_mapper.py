"""Tests for header to column resolution."""

from __future__ import annotations

from freestate.core.csv import NOT_FOUND, find_column_index, normalize_header, resolve_columns
from freestate.shared.constants import ColumnSynonyms


class TestFindColumnIndex:
    """Test cases for find_column_index."""

    def test_substring_match(self) -> None:
        # Given a header where "id" only appears inside "company_id"
        header = ["Company_ID", "Name", "Image_Path"]

        # When
        index = find_column_index(header, ["id", "company_id"])

        # Then
        assert index == 0

    def test_candidate_priority_beats_column_order(self) -> None:
        header = ["Title", "Name"]

        assert find_column_index(header, ["name", "title"]) == 1

    def test_exact_match_is_case_and_quote_insensitive(self) -> None:
        assert find_column_index(['"Image_URL"', "Photo"], ["image_url"]) == 0

    def test_no_match_returns_not_found(self) -> None:
        assert find_column_index(["foo", "bar"], ["name"]) == NOT_FOUND

    def test_empty_candidate_is_ignored(self) -> None:
        assert find_column_index(["name"], ["", "name"]) == 0


def test_normalize_header() -> None:
    assert normalize_header("  'Key_Features' ") == "key_features"


class TestResolveColumns:
    """Test cases for resolve_columns and ColumnIndexMap."""

    def test_projects_header(self) -> None:
        # Given a typical projects sheet header
        header = ["Project_ID", "Company_ID", "ID_Loc", "Project_Name", "Key_Features", "Image"]

        # When
        columns = resolve_columns(header, ColumnSynonyms.PROJECTS)

        # Then
        assert columns["id"] == 0
        assert columns["company_id"] == 1
        assert columns["location_id"] == 2
        assert columns["name"] == 3
        assert columns["description"] == 4
        assert columns["image"] == 5
        assert not columns.has("active")

    def test_missing_lists_unresolved_required_fields(self) -> None:
        columns = resolve_columns(["Name"], ColumnSynonyms.COMPANIES)

        assert columns.missing(("id", "name")) == ("id",)

    def test_value_of_short_row_is_empty(self) -> None:
        columns = resolve_columns(["id", "name", "image"], ColumnSynonyms.COMPANIES)

        assert columns.value(["1", "Acme"], "image") == ""
        assert columns.value(["1", "Acme"], "active") == ""
        assert columns.value(["1", "Acme"], "name") == "Acme"
