"""Resolve logical record fields to spreadsheet column positions.

Sheet headers are edited by hand, so matching is forgiving: headers are
normalised (lowercase, quotes stripped, trimmed) and a candidate matches a
header exactly or as a substring. Candidates are tried in priority order,
and the first candidate with any match wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

NOT_FOUND = -1


def normalize_header(header: str) -> str:
    return header.lower().replace('"', "").replace("'", "").strip()


def find_column_index(header_row: Sequence[str], candidate_names: Iterable[str]) -> int:
    """Find the column for the first candidate name that matches any header.

    Args:
        header_row: Header cells of the sheet
        candidate_names: Accepted names in priority order

    Returns:
        Column index, or -1 when no candidate matches

    Example:
        >>> find_column_index(["Company_ID", "Name", "Image_Path"], ["id", "company_id"])
        0
    """
    headers = [normalize_header(h) for h in header_row]
    for candidate in candidate_names:
        name = normalize_header(candidate)
        if not name:
            continue
        for index, header in enumerate(headers):
            if header == name or name in header:
                return index
    return NOT_FOUND


@dataclass(frozen=True)
class ColumnIndexMap:
    """Logical field name to column index (-1 when absent)."""

    indices: Mapping[str, int] = field(default_factory=dict)

    def __getitem__(self, field_name: str) -> int:
        return self.indices.get(field_name, NOT_FOUND)

    def has(self, field_name: str) -> bool:
        return self[field_name] != NOT_FOUND

    def missing(self, required: Iterable[str]) -> tuple[str, ...]:
        """Required fields that were not resolved to a column."""
        return tuple(name for name in required if not self.has(name))

    def value(self, row: Sequence[str], field_name: str) -> str:
        """Cell for ``field_name`` in ``row``, or "" when absent or short."""
        index = self[field_name]
        if index == NOT_FOUND or index >= len(row):
            return ""
        return row[index]


def resolve_columns(
    header_row: Sequence[str],
    synonyms: Mapping[str, Iterable[str]],
) -> ColumnIndexMap:
    """Resolve every field in a synonym table against ``header_row``."""
    return ColumnIndexMap(
        {name: find_column_index(header_row, candidates) for name, candidates in synonyms.items()}
    )
