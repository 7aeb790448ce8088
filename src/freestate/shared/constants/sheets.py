"""
Sheet and Record Constants

Sheet types served by the proxy, record store names, the column synonym
tables used to map spreadsheet headers onto record fields, and the
user-facing messages for sheet failures.
"""

from __future__ import annotations

from enum import Enum

from .cache import CacheDuration


class SheetType(str, Enum):
    """Sheet types accepted by the proxy endpoint."""

    COMPANIES = "companies"
    PROJECTS = "projects"
    USERS = "users"
    PLACES = "places"


class SheetFormat(str, Enum):
    """Export formats accepted by the proxy endpoint."""

    CSV = "csv"
    TQ = "tq"


class StoreName(str, Enum):
    """Object stores in the durable record store."""

    COMPANIES = "companies"
    PROJECTS = "projects"
    PLACES = "places"
    PENDING_ACTIONS = "pending_actions"


# Sheet types that map onto typed records
RECORD_SHEET_TYPES: tuple[SheetType, ...] = (
    SheetType.COMPANIES,
    SheetType.PROJECTS,
    SheetType.PLACES,
)

# Cache tier per sheet; company and place listings change rarely
SHEET_CACHE_TTL: dict[SheetType, int] = {
    SheetType.COMPANIES: CacheDuration.LONG,
    SheetType.PROJECTS: CacheDuration.MEDIUM,
    SheetType.USERS: CacheDuration.SHORT,
    SheetType.PLACES: CacheDuration.LONG,
}


class ColumnSynonyms:
    """Header synonyms per logical field, in priority order."""

    NAME = ("name", "title", "project_name")
    DESCRIPTION = ("description", "desc", "detail", "key_features", "feature")
    IMAGE = ("image_url", "image", "image_path", "photo", "pic", "img")
    ACTIVE = ("active", "status")

    COMPANIES: dict[str, tuple[str, ...]] = {
        "id": ("id", "company_id"),
        "name": NAME,
        "description": DESCRIPTION,
        "image": IMAGE,
        "active": ACTIVE,
    }

    PROJECTS: dict[str, tuple[str, ...]] = {
        "id": ("project_id",),
        "company_id": ("company_id", "company"),
        "location_id": ("id_loc", "location_id", "loc"),
        "name": NAME,
        "description": DESCRIPTION,
        "image": IMAGE,
        "active": ACTIVE,
    }

    PLACES: dict[str, tuple[str, ...]] = {
        "id": ("id_loc", "id"),
        "name": ("name",),
        "description": ("description", "desc"),
        "image": ("image_url", "image"),
    }


REQUIRED_COLUMNS: dict[SheetType, tuple[str, ...]] = {
    SheetType.COMPANIES: ("id", "name"),
    SheetType.PROJECTS: ("name", "location_id"),
    SheetType.PLACES: ("id", "name"),
}

# Cell values read as an active flag
ACTIVE_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "active", "on"})


class SheetMessages:
    """User-facing messages for sheet failures."""

    SERVER = "Server error. Please try again later."
    EMPTY = "No data available. Please try again later."
    ACCESS_DENIED = "Access denied. Please make sure the sheet is publicly accessible."
    NOT_ACCESSIBLE = "Sheet not publicly accessible"
    STALE_DATA = "Network error - using cached data: {error}"


class ImageUrls:
    """Placeholder and rewrite targets for record images."""

    PLACEHOLDER = "https://placehold.co/800x600?text=No+Image"
    INVALID = "https://placehold.co/800x600?text=Invalid+URL"
    DRIVE_DIRECT_TEMPLATE = "https://drive.google.com/uc?export=view&id={file_id}"
    GOOGLE_USER_CONTENT = "lh3.googleusercontent.com/d/"
    IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp")
    TRUSTED_HOSTS = (
        "imgur.com",
        "cloudinary.com",
        "amazonaws.com",
        "unsplash.com",
        "picsum.photos",
        "via.placeholder.com",
        "placehold.co",
    )
