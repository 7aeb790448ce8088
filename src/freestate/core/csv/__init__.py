"""CSV tokenizing and header mapping."""

from freestate.core.csv.column_mapper import (
    NOT_FOUND,
    ColumnIndexMap,
    find_column_index,
    normalize_header,
    resolve_columns,
)
from freestate.core.csv.tokenizer import format_csv, parse_csv

__all__ = [
    "NOT_FOUND",
    "ColumnIndexMap",
    "find_column_index",
    "format_csv",
    "normalize_header",
    "parse_csv",
    "resolve_columns",
]
