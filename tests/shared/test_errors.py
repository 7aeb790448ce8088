"""Tests for the error hierarchy and its factory functions."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import pytest

from freestate.shared.errors import (
    DataShapeError,
    DomainError,
    ErrorCode,
    ErrorContext,
    FreeStateError,
    HttpStatusError,
    InfrastructureError,
    NetworkError,
    OperationCancelledError,
    StorageError,
    StorageQuotaExceededError,
    create_cancelled_error,
    create_http_status_error,
    create_missing_columns_error,
    create_network_error,
    create_quota_exceeded_error,
)


class _Color(Enum):
    RED = "red"


class TestErrorContext:
    """Test cases for ErrorContext."""

    def test_additional_data_is_coerced_to_primitives(self) -> None:
        context = ErrorContext(additional_data={"path": Path("/tmp/x.db"), "color": _Color.RED, "n": 3})

        assert context.additional_data == {"path": "/tmp/x.db", "color": "red", "n": 3}

    def test_rejects_non_primitive_values(self) -> None:
        with pytest.raises(TypeError, match="Cannot coerce list"):
            ErrorContext(additional_data={"items": [1, 2]})

    def test_safe_dict_masks_user_id(self) -> None:
        context = ErrorContext(operation="load", user_id="u-1")

        assert context.safe_dict() == {"operation": "load", "additional_data": {}}


class TestHierarchy:
    """Test cases for error classification."""

    def test_http_status_codes(self) -> None:
        assert create_http_status_error(429, "slow down").code == ErrorCode.API_RATE_LIMIT
        assert create_http_status_error(403, "no").code == ErrorCode.API_ACCESS_DENIED
        assert create_http_status_error(502, "bad gateway").code == ErrorCode.API_SERVER_ERROR
        assert create_http_status_error(404, "missing").code == ErrorCode.API_REQUEST_FAILED

    def test_http_status_error_is_a_network_error(self) -> None:
        error = create_http_status_error(500, "boom", url="http://x", body="trace")

        assert isinstance(error, NetworkError)
        assert isinstance(error, InfrastructureError)
        assert error.status == 500
        assert error.body == "trace"
        assert error.context.additional_data == {"status": 500, "url": "http://x"}

    def test_missing_columns_error(self) -> None:
        error = create_missing_columns_error("companies", ("id",), ["Name", "Phone"])

        assert isinstance(error, DataShapeError)
        assert isinstance(error, DomainError)
        assert error.missing_columns == ("id",)
        assert "Found headers: Name, Phone" in error.message

    def test_quota_error_is_a_storage_error(self) -> None:
        error = create_quota_exceeded_error(2048, 1024)

        assert isinstance(error, StorageQuotaExceededError)
        assert isinstance(error, StorageError)
        assert "2048" in error.message

    def test_cancelled_error(self) -> None:
        error = create_cancelled_error("fetch", "superseded")

        assert isinstance(error, OperationCancelledError)
        assert error.message == "Operation cancelled: superseded"
        assert create_cancelled_error().message == "Operation cancelled"

    def test_str_and_to_dict(self) -> None:
        cause = OSError("disk gone")
        error = create_network_error("unreachable", url="http://x", operation="fetch", original_error=cause)

        assert str(error) == "NETWORK_ERROR: unreachable"
        assert isinstance(error, FreeStateError)
        assert error.to_dict() == {
            "code": "NETWORK_ERROR",
            "message": "unreachable",
            "context": {"operation": "fetch", "additional_data": {"url": "http://x"}},
            "original_error": "disk gone",
        }

    def test_http_status_error_keeps_explicit_code(self) -> None:
        error = HttpStatusError(ErrorCode.API_REQUEST_FAILED, "teapot", 418)

        assert error.status == 418
        assert error.body is None
