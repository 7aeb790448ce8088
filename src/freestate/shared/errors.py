"""Free State Error Handling Module

This module defines the error handling system for the directory client,
providing structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Classified Failures: every error belongs to exactly one recovery class
  (transient network, data shape, storage, cancellation, configuration)
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ("user_id",)


class ErrorCode(str, Enum):
    """Error codes for the directory client.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # Network and API Errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_TIMEOUT = "API_TIMEOUT"
    API_RATE_LIMIT = "API_RATE_LIMIT"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_SERVER_ERROR = "API_SERVER_ERROR"
    API_ACCESS_DENIED = "API_ACCESS_DENIED"

    # Sheet / Data Shape Errors
    SHEET_EMPTY = "SHEET_EMPTY"
    SHEET_NOT_ACCESSIBLE = "SHEET_NOT_ACCESSIBLE"
    INVALID_SHEET_TYPE = "INVALID_SHEET_TYPE"
    MISSING_REQUIRED_COLUMN = "MISSING_REQUIRED_COLUMN"
    PARSING_ERROR = "PARSING_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Cache Errors
    CACHE_ERROR = "CACHE_ERROR"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"
    CACHE_CORRUPTED = "CACHE_CORRUPTED"

    # Storage Errors
    STORAGE_ERROR = "STORAGE_ERROR"
    STORAGE_QUOTA_EXCEEDED = "STORAGE_QUOTA_EXCEEDED"
    STORE_NOT_OPEN = "STORE_NOT_OPEN"
    UNKNOWN_STORE = "UNKNOWN_STORE"
    MIGRATION_FAILED = "MIGRATION_FAILED"

    # Sync Errors
    SYNC_ACTION_FAILED = "SYNC_ACTION_FAILED"

    # Configuration Errors
    CONFIG_ERROR = "CONFIG_ERROR"
    MISSING_CONFIG = "MISSING_CONFIG"
    INVALID_CONFIG = "INVALID_CONFIG"

    # Application Errors
    OPERATION_CANCELLED = "OPERATION_CANCELLED"

    # CLI Errors
    CLI_INVALID_ARGUMENTS = "CLI_INVALID_ARGUMENTS"
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"
    CLI_COMMAND_INTERRUPTED = "CLI_COMMAND_INTERRUPTED"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data so that contexts serialize safely into structured logs.

    Attributes:
        file_path: Optional file or database path associated with the error
        operation: Optional operation name that caused the error
        user_id: Optional user ID (masked in logs)
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    user_id: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict with sensitive fields masked.

        Args:
            mask_keys: Fields to exclude from output. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary with masked sensitive fields and guaranteed additional_data key.
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.file_path is not None and "file_path" not in mask_keys:
            data["file_path"] = self.file_path
        if self.operation is not None and "operation" not in mask_keys:
            data["operation"] = self.operation
        if self.user_id is not None and "user_id" not in mask_keys:
            data["user_id"] = self.user_id

        if self.additional_data is not None and "additional_data" not in mask_keys:
            data["additional_data"] = self.additional_data
        else:
            data["additional_data"] = {}

        return data


class FreeStateError(Exception):
    """Base exception class for all directory client errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize FreeStateError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and JSON output."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(FreeStateError):
    """Domain-specific errors.

    These errors occur when incoming data violates the shape the directory
    expects. They are never retried.

    Examples:
    - Missing required sheet columns
    - Sheet export returned HTML instead of CSV
    - Empty sheet
    """


class InfrastructureError(FreeStateError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems
    like the network, the sheet proxy, or local storage.
    """


class ApplicationError(FreeStateError):
    """Application-level errors.

    These errors occur at the application layer, typically
    related to configuration, command handling, or cancellation.
    """


class NetworkError(InfrastructureError):
    """Transient network failure.

    Raised when a request cannot complete: connection errors, timeouts,
    and (through HttpStatusError) non-2xx responses. Callers may retry
    or fall back to cached data.
    """


class HttpStatusError(NetworkError):
    """Non-2xx HTTP response."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status: int,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.status = status
        self.body = body


class DataShapeError(DomainError):
    """Malformed or unusable sheet data."""


class ParseError(DataShapeError):
    """Sheet could not be mapped onto typed records."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        missing_columns: tuple[str, ...] = (),
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.missing_columns = missing_columns


class StorageError(InfrastructureError):
    """Local persistence failure (cache backend or record store)."""


class StorageQuotaExceededError(StorageError):
    """A write would exceed the storage backend's quota."""


class OperationCancelledError(ApplicationError):
    """Operation was superseded or cancelled through its token."""


# Convenience functions for common error scenarios
def create_network_error(
    message: str,
    url: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
    *,
    code: ErrorCode = ErrorCode.NETWORK_ERROR,
) -> NetworkError:
    """Create a network error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"url": url} if url else None,
    )
    return NetworkError(code, message, context, original_error)


def create_http_status_error(
    status: int,
    message: str,
    url: str | None = None,
    operation: str | None = None,
    body: str | None = None,
) -> HttpStatusError:
    """Create an HTTP status error, classifying the code by status."""
    if status == 429:
        code = ErrorCode.API_RATE_LIMIT
    elif status == 403:
        code = ErrorCode.API_ACCESS_DENIED
    elif status >= 500:
        code = ErrorCode.API_SERVER_ERROR
    else:
        code = ErrorCode.API_REQUEST_FAILED

    additional_data: dict[str, PrimitiveContextValue] = {"status": status}
    if url:
        additional_data["url"] = url
    context = ErrorContext(operation=operation, additional_data=additional_data)
    return HttpStatusError(code, message, status, context, body=body)


def create_data_shape_error(
    message: str,
    sheet_type: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
    *,
    code: ErrorCode = ErrorCode.PARSING_ERROR,
) -> DataShapeError:
    """Create a data shape error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"sheet_type": sheet_type} if sheet_type else None,
    )
    return DataShapeError(code, message, context, original_error)


def create_missing_columns_error(
    sheet_type: str,
    missing_columns: tuple[str, ...],
    headers: list[str],
    operation: str | None = None,
) -> ParseError:
    """Create a parse error naming the required columns that were not found."""
    message = (
        f"Missing required columns for {sheet_type}: {', '.join(missing_columns)}. "
        f"Found headers: {', '.join(headers)}"
    )
    context = ErrorContext(
        operation=operation,
        additional_data={
            "sheet_type": sheet_type,
            "missing_columns": ",".join(missing_columns),
        },
    )
    return ParseError(
        ErrorCode.MISSING_REQUIRED_COLUMN,
        message,
        context,
        missing_columns=missing_columns,
    )


def create_storage_error(
    message: str,
    file_path: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
    *,
    code: ErrorCode = ErrorCode.STORAGE_ERROR,
) -> StorageError:
    """Create a storage error with context."""
    context = ErrorContext(file_path=file_path, operation=operation)
    return StorageError(code, message, context, original_error)


def create_quota_exceeded_error(
    required_bytes: int,
    quota_bytes: int,
    operation: str | None = None,
) -> StorageQuotaExceededError:
    """Create a quota exceeded error with the sizes involved."""
    context = ErrorContext(
        operation=operation,
        additional_data={
            "required_bytes": required_bytes,
            "quota_bytes": quota_bytes,
        },
    )
    return StorageQuotaExceededError(
        ErrorCode.STORAGE_QUOTA_EXCEEDED,
        f"Storage quota exceeded: {required_bytes} bytes needed, quota is {quota_bytes}",
        context,
    )


def create_cancelled_error(
    operation: str | None = None,
    reason: str | None = None,
) -> OperationCancelledError:
    """Create a cancellation error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"reason": reason} if reason else None,
    )
    return OperationCancelledError(
        ErrorCode.OPERATION_CANCELLED,
        f"Operation cancelled: {reason}" if reason else "Operation cancelled",
        context,
    )


class CliError(ApplicationError):
    """CLI-specific error carrying the command and exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


def create_cli_error(
    message: str,
    command: str | None = None,
    original_error: Exception | None = None,
    *,
    code: ErrorCode = ErrorCode.CLI_UNEXPECTED_ERROR,
    exit_code: int = 1,
) -> CliError:
    """Create a CLI error with context."""
    context = ErrorContext(
        operation="cli",
        additional_data={"command": command} if command else None,
    )
    return CliError(code, message, context, original_error, command, exit_code)
