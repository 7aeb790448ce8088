"""Tests for the CSV tokenizer."""

from __future__ import annotations

from freestate.core.csv import format_csv, parse_csv


class TestParseCsv:
    """Test cases for parse_csv."""

    def test_quoted_field_with_delimiter_and_escaped_quote(self) -> None:
        # Given a quoted field holding a comma and a doubled quote
        text = 'a,"b,c""d",e\n'

        # When
        rows = parse_csv(text)

        # Then
        assert rows == [["a", 'b,c"d', "e"]]

    def test_crlf_and_lone_cr_end_rows(self) -> None:
        rows = parse_csv("h1,h2\r\n1,2\r3,4\n5,6")

        assert rows == [["h1", "h2"], ["1", "2"], ["3", "4"], ["5", "6"]]

    def test_blank_rows_are_dropped(self) -> None:
        rows = parse_csv("a,b\n\n , \n\nc,d\n")

        assert rows == [["a", "b"], ["c", "d"]]

    def test_fields_are_trimmed(self) -> None:
        assert parse_csv("  id , name  \n") == [["id", "name"]]

    def test_line_break_inside_quotes_stays_in_field(self) -> None:
        rows = parse_csv('id,description\n1,"line one\nline two"\n')

        assert rows == [["id", "description"], ["1", "line one\nline two"]]

    def test_final_row_without_newline_is_kept(self) -> None:
        assert parse_csv("a,b\nc,d") == [["a", "b"], ["c", "d"]]

    def test_trailing_empty_field_is_kept(self) -> None:
        assert parse_csv("a,b,\n") == [["a", "b", ""]]

    def test_unterminated_quote_absorbs_rest_of_text(self) -> None:
        rows = parse_csv('a,"b\nc,d\n')

        assert rows == [["a", "b\nc,d"]]

    def test_empty_text(self) -> None:
        assert parse_csv("") == []


class TestFormatCsv:
    """Test cases for format_csv."""

    def test_quotes_only_fields_that_need_it(self) -> None:
        text = format_csv([["id", "name"], ["1", 'Say "hi", then\nleave']])

        assert text == 'id,name\n1,"Say ""hi"", then\nleave"'

    def test_output_parses_back(self) -> None:
        # Given rows with every special character
        rows = [["id", "note"], ["7", 'a,b "c"\r\nd']]

        # When / Then
        assert parse_csv(format_csv(rows)) == rows
