"""Sheet proxy API configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from freestate.shared.constants import NetworkConfig, SheetFormat


class APISettings(BaseModel):
    """Sheet proxy connection and retry configuration.

    Delays and timeouts are in seconds.
    """

    base_url: str = Field(
        default=NetworkConfig.DEFAULT_BASE_URL,
        description="Base URL of the sheet proxy API",
    )
    sheet_format: SheetFormat = Field(
        default=SheetFormat.CSV,
        description="Export format requested from the proxy (csv or tq)",
    )
    request_timeout: float = Field(
        default=NetworkConfig.REQUEST_TIMEOUT,
        gt=0,
        description="Hard timeout per request attempt",
    )
    max_retries: int = Field(
        default=NetworkConfig.DEFAULT_RETRIES,
        ge=0,
        description="Retries after the first attempt",
    )
    retry_base_delay: float = Field(
        default=NetworkConfig.RETRY_BASE_DELAY,
        ge=0,
        description="Base delay for exponential backoff",
    )
    rate_limit_delay: float = Field(
        default=NetworkConfig.RATE_LIMIT_DELAY,
        ge=0,
        description="Minimum delay after an HTTP 429 response",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
