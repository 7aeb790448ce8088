"""CSV tokenizer for spreadsheet exports.

A small state machine over the raw text rather than the ``csv`` module: the
sheet proxy output needs blank-row dropping and per-field trimming, and a
lone ``\\r`` must end a row the same way ``\\n`` does.

Rules:
    - ``,`` separates fields outside quotes.
    - ``"`` toggles quoting; ``""`` inside quotes is a literal quote.
    - ``\\n``, ``\\r\\n`` and a lone ``\\r`` end a row outside quotes.
    - Fields are trimmed; rows whose fields are all empty are dropped.
    - An unterminated quote absorbs the rest of the text into one field.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

_QUOTE = '"'
_DELIMITER = ","
_NEEDS_QUOTING = frozenset({_QUOTE, _DELIMITER, "\r", "\n"})


def _flush_row(rows: list[list[str]], row: list[str]) -> None:
    if any(field for field in row):
        rows.append(row)


def parse_csv(text: str) -> list[list[str]]:
    """Split CSV text into rows of trimmed fields.

    Args:
        text: Raw CSV text

    Returns:
        Non-blank rows in input order

    Example:
        >>> parse_csv('a,"b,c""d",e\\n')
        [['a', 'b,c"d', 'e']]
    """
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False

    i = 0
    length = len(text)
    while i < length:
        char = text[i]

        if char == _QUOTE:
            if in_quotes and i + 1 < length and text[i + 1] == _QUOTE:
                field.append(_QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == _DELIMITER and not in_quotes:
            row.append("".join(field).strip())
            field = []
        elif char in "\r\n" and not in_quotes:
            if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                i += 1
            row.append("".join(field).strip())
            _flush_row(rows, row)
            row = []
            field = []
        else:
            field.append(char)

        i += 1

    if field or row:
        row.append("".join(field).strip())
        _flush_row(rows, row)

    return rows


def _format_field(value: str) -> str:
    if any(char in _NEEDS_QUOTING for char in value):
        return _QUOTE + value.replace(_QUOTE, _QUOTE * 2) + _QUOTE
    return value


def format_csv(rows: Iterable[Sequence[str]]) -> str:
    """Serialize rows to CSV text that :func:`parse_csv` reads back.

    Fields containing a delimiter, quote or line break are quoted.
    """
    return "\n".join(_DELIMITER.join(_format_field(value) for value in row) for row in rows)
