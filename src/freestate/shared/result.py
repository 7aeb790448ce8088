"""Typed outcome of a sheet load.

Loads return ``Ok`` or ``Err`` instead of raising, so callers branch on the
failure class explicitly: a network failure may still carry stale records,
a data shape failure never does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar, Union

from freestate.shared.errors import FreeStateError

T = TypeVar("T")


class DataSource(str, Enum):
    """Where the records in a successful load came from."""

    CACHE = "cache"
    NETWORK = "network"
    OFFLINE_STORE = "offline_store"


class ErrorKind(str, Enum):
    """Failure classes a caller can act on."""

    NETWORK = "network"
    DATA_SHAPE = "data_shape"
    STORAGE = "storage"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful load.

    Attributes:
        value: Loaded records
        source: Where they came from
        stale: True when served from a fallback after a failed fetch
        warning: Message describing the failure that caused the fallback
    """

    value: T
    source: DataSource = DataSource.NETWORK
    stale: bool = False
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed load."""

    kind: ErrorKind
    message: str
    error: FreeStateError | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
