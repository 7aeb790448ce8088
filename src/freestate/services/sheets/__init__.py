"""Sheet proxy client and the record-loading repository."""

from freestate.services.sheets.client import SheetsClient
from freestate.services.sheets.repository import LoadResult, SheetRepository, cache_key

__all__ = ["LoadResult", "SheetRepository", "SheetsClient", "cache_key"]
