"""Turn sheet CSV exports into typed directory records.

One tokenizer and one column mapper serve every sheet type; only the
synonym table and the required fields differ per type.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from freestate.core.csv import ColumnIndexMap, parse_csv, resolve_columns
from freestate.core.images import direct_image_url
from freestate.core.records import RECORD_TYPES, Company, DirectoryRecord, Place, Project
from freestate.shared.constants import (
    ACTIVE_TRUE_VALUES,
    REQUIRED_COLUMNS,
    ColumnSynonyms,
    SheetMessages,
    SheetType,
)
from freestate.shared.errors import (
    ErrorCode,
    create_data_shape_error,
    create_missing_columns_error,
)

logger = logging.getLogger(__name__)

_HTML_MARKERS = ("<!doctype html", "<html")
_GOOGLE_ERROR_MARKER = "400. that's an error"

SYNONYMS: dict[SheetType, dict[str, tuple[str, ...]]] = {
    SheetType.COMPANIES: ColumnSynonyms.COMPANIES,
    SheetType.PROJECTS: ColumnSynonyms.PROJECTS,
    SheetType.PLACES: ColumnSynonyms.PLACES,
}


def is_inaccessible_sheet(text: str) -> bool:
    """True when the export is an HTML page or Google's error page instead of CSV."""
    head = text.lstrip()[:512].lower()
    return head.startswith(_HTML_MARKERS) or _GOOGLE_ERROR_MARKER in head


def coerce_sheet_type(sheet_type: SheetType | str) -> SheetType:
    """Convert a sheet type name, rejecting names the proxy does not serve."""
    try:
        return SheetType(sheet_type)
    except ValueError as e:
        valid = ", ".join(t.value for t in SheetType)
        raise create_data_shape_error(
            f"Invalid sheet type '{sheet_type}'. Expected one of: {valid}",
            operation="coerce_sheet_type",
            original_error=e,
            code=ErrorCode.INVALID_SHEET_TYPE,
        ) from e


def parse_active(value: str) -> bool:
    """Read an active flag; an empty cell counts as active."""
    value = value.strip().lower()
    if not value:
        return True
    return value in ACTIVE_TRUE_VALUES


def _company(columns: ColumnIndexMap, row: Sequence[str], _index: int) -> Company | None:
    record_id = columns.value(row, "id")
    name = columns.value(row, "name")
    if not record_id or not name:
        return None
    return Company(
        id=record_id,
        name=name,
        description=columns.value(row, "description"),
        image=direct_image_url(columns.value(row, "image")),
        active=parse_active(columns.value(row, "active")),
    )


def _project(columns: ColumnIndexMap, row: Sequence[str], index: int) -> Project | None:
    name = columns.value(row, "name")
    location_id = columns.value(row, "location_id")
    if not name or not location_id:
        return None

    company_id = columns.value(row, "company_id")
    # Sheets without a project id column get ids from the row position
    record_id = columns.value(row, "id")
    if not record_id:
        record_id = f"{company_id}_{index}" if company_id else f"project_{index}"

    return Project(
        id=record_id,
        name=name,
        description=columns.value(row, "description"),
        image=direct_image_url(columns.value(row, "image")),
        company_id=company_id,
        location_id=location_id,
        active=parse_active(columns.value(row, "active")),
    )


def _place(columns: ColumnIndexMap, row: Sequence[str], _index: int) -> Place | None:
    record_id = columns.value(row, "id")
    name = columns.value(row, "name")
    if not record_id or not name:
        return None
    return Place(
        id=record_id,
        name=name,
        description=columns.value(row, "description"),
        image=direct_image_url(columns.value(row, "image")),
    )


_ROW_BUILDERS: dict[SheetType, Callable[[ColumnIndexMap, Sequence[str], int], DirectoryRecord | None]] = {
    SheetType.COMPANIES: _company,
    SheetType.PROJECTS: _project,
    SheetType.PLACES: _place,
}


def parse_rows(sheet_type: SheetType, rows: list[list[str]]) -> list[DirectoryRecord]:
    """Map tokenized rows (header first) onto records of ``sheet_type``.

    Raises:
        DataShapeError: If the sheet type has no record type or the sheet has no data rows
        ParseError: If a required column is missing from the header
    """
    if sheet_type not in RECORD_TYPES:
        raise create_data_shape_error(
            f"Sheet type '{sheet_type.value}' does not map to directory records",
            sheet_type=sheet_type.value,
            operation="parse_records",
            code=ErrorCode.INVALID_SHEET_TYPE,
        )
    if len(rows) < 2:
        raise create_data_shape_error(
            SheetMessages.EMPTY,
            sheet_type=sheet_type.value,
            operation="parse_records",
            code=ErrorCode.SHEET_EMPTY,
        )

    header, data_rows = rows[0], rows[1:]
    columns = resolve_columns(header, SYNONYMS[sheet_type])
    missing = columns.missing(REQUIRED_COLUMNS[sheet_type])
    if missing:
        raise create_missing_columns_error(
            sheet_type.value,
            missing,
            header,
            operation="parse_records",
        )

    build = _ROW_BUILDERS[sheet_type]
    records: list[DirectoryRecord] = []
    skipped = 0
    for index, row in enumerate(data_rows, start=1):
        record = build(columns, row, index)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.warning(
            "Skipped %d %s rows missing required values",
            skipped,
            sheet_type.value,
            extra={"operation": "parse_records", "context": {"sheet_type": sheet_type.value}},
        )
    return records


def parse_records(sheet_type: SheetType | str, text: str) -> list[DirectoryRecord]:
    """Parse a sheet CSV export into typed records.

    Args:
        sheet_type: Sheet to interpret the text as
        text: Raw CSV export

    Returns:
        Records in sheet order; rows missing required values are skipped

    Raises:
        DataShapeError: For empty exports, HTML pages or unknown sheet types
        ParseError: If a required column is missing
    """
    sheet_type = coerce_sheet_type(sheet_type)
    if not text or not text.strip():
        raise create_data_shape_error(
            SheetMessages.EMPTY,
            sheet_type=sheet_type.value,
            operation="parse_records",
            code=ErrorCode.SHEET_EMPTY,
        )
    if is_inaccessible_sheet(text):
        raise create_data_shape_error(
            SheetMessages.NOT_ACCESSIBLE,
            sheet_type=sheet_type.value,
            operation="parse_records",
            code=ErrorCode.SHEET_NOT_ACCESSIBLE,
        )
    return parse_rows(sheet_type, parse_csv(text))
