"""Typed response model returned on success."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from remote_client.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN


T = TypeVar("T")


@dataclass(frozen=True)
class BaseResponse(Generic[T]):
    """Parsed API response.

    Attributes:
        status_code: HTTP status code of the envelope.
        success: Success flag reported by the API (or derived by the parser).
        data: Decoded payload, if any.
        message: Optional human message from the API.
        meta: Optional metadata mapping (pagination etc.).
    """

    status_code: int
    success: bool
    data: T | None = None
    message: str | None = None
    meta: Mapping[str, Any] | None = None

    @property
    def is_success(self) -> bool:
        """Success flag set and 2xx status code."""
        return self.success and HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def has_data(self) -> bool:
        """Check if a payload is present."""
        return self.data is not None

    @property
    def error_message(self) -> str:
        """Message or a generic fallback."""
        return self.message or "Unknown error occurred"
