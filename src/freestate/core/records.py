"""Typed directory records and queued offline actions.

Records cross every storage boundary as plain dicts (``to_dict`` /
``from_dict``), so a caller never holds a reference into a store.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar, Union

from freestate.shared.constants import ImageUrls, SheetType, StoreName

RecordId = Union[str, int]


@dataclass
class DirectoryRecord:
    """Common fields of companies, projects and places."""

    sheet_type: ClassVar[SheetType]
    store_name: ClassVar[StoreName]

    id: RecordId
    name: str
    description: str = ""
    image: str = ImageUrls.PLACEHOLDER

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DirectoryRecord:
        """Build a record from a stored dict, ignoring unknown keys.

        Raises:
            TypeError: If ``data`` is not a dict or lacks a required field
        """
        if not isinstance(data, dict):
            error_msg = f"{cls.__name__} payload must be dict, got {type(data).__name__}"
            raise TypeError(error_msg)
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class Company(DirectoryRecord):
    sheet_type: ClassVar[SheetType] = SheetType.COMPANIES
    store_name: ClassVar[StoreName] = StoreName.COMPANIES

    active: bool = True


@dataclass
class Project(DirectoryRecord):
    sheet_type: ClassVar[SheetType] = SheetType.PROJECTS
    store_name: ClassVar[StoreName] = StoreName.PROJECTS

    company_id: str = ""
    location_id: str = ""
    active: bool = True


@dataclass
class Place(DirectoryRecord):
    sheet_type: ClassVar[SheetType] = SheetType.PLACES
    store_name: ClassVar[StoreName] = StoreName.PLACES


RECORD_TYPES: dict[SheetType, type[DirectoryRecord]] = {
    SheetType.COMPANIES: Company,
    SheetType.PROJECTS: Project,
    SheetType.PLACES: Place,
}

RECORD_TYPES_BY_STORE: dict[StoreName, type[DirectoryRecord]] = {
    record_type.store_name: record_type for record_type in RECORD_TYPES.values()
}


@dataclass
class PendingAction:
    """A mutation queued while offline.

    Attributes:
        id: Auto-increment key assigned by the store
        type: Action type, used to pick a handler when there is no URL
        data: JSON-serializable payload
        url: Endpoint to replay against, if the action is an HTTP call
        method: HTTP method for the replay
        timestamp: Enqueue time in epoch milliseconds
        processed: True once replayed successfully
    """

    id: int
    type: str
    data: Any = None
    url: str | None = None
    method: str | None = None
    timestamp: int = 0
    processed: bool = False

    @property
    def is_http(self) -> bool:
        return bool(self.url and self.method)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

