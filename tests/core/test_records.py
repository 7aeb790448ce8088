"""Tests for typed records and pending actions."""

from __future__ import annotations

import pytest

from freestate.core.records import (
    RECORD_TYPES_BY_STORE,
    Company,
    PendingAction,
    Project,
)
from freestate.shared.constants import StoreName


class TestDirectoryRecord:
    """Test cases for record dict conversion."""

    def test_from_dict_ignores_unknown_keys(self) -> None:
        record = Company.from_dict({"id": "c1", "name": "Acme", "rating": 5})

        assert record == Company(id="c1", name="Acme")

    def test_from_dict_rejects_non_dict(self) -> None:
        with pytest.raises(TypeError):
            Company.from_dict(["c1", "Acme"])  # type: ignore[arg-type]

    def test_from_dict_requires_id_and_name(self) -> None:
        with pytest.raises(TypeError):
            Project.from_dict({"name": "Riverside"})

    def test_to_dict_copies(self) -> None:
        record = Project(id="p1", name="Riverside", location_id="loc-1")

        data = record.to_dict()
        data["name"] = "Changed"

        assert record.name == "Riverside"
        assert Project.from_dict(record.to_dict()) == record

    def test_store_lookup(self) -> None:
        assert RECORD_TYPES_BY_STORE[StoreName.COMPANIES] is Company
        assert StoreName.PENDING_ACTIONS not in RECORD_TYPES_BY_STORE


class TestPendingAction:
    """Test cases for PendingAction."""

    def test_http_action_needs_url_and_method(self) -> None:
        assert PendingAction(id=1, type="inquiry", url="http://x/api", method="POST").is_http
        assert not PendingAction(id=2, type="favorite").is_http
        assert not PendingAction(id=3, type="inquiry", url="http://x/api").is_http
