"""Closed failure taxonomy returned in the `Left` branch."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from remote_client.models.request import ResponseEnvelope


class FailureKind(str, Enum):
    """Every way a client call can fail.

    - CONNECTION_TIMEOUT / SEND_TIMEOUT / RECEIVE_TIMEOUT: transport timeouts
    - CONNECTION_ERROR: connection could not be established or dropped
    - BAD_RESPONSE: unexpected status code
    - BAD_CERTIFICATE: TLS certificate rejected
    - UNAUTHORIZED: 401/403, after any token refresh attempt
    - BAD_REQUEST: 400/422
    - INTERNAL_SERVER_ERROR: 500
    - SERVICE_UNAVAILABLE: 503
    - NOT_FOUND: 404
    - NO_INTERNET: device is offline
    - CANCELLED: caller cancelled the request
    - UNEXPECTED: anything else (parse errors, hook failures)
    """

    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    SEND_TIMEOUT = "SEND_TIMEOUT"
    RECEIVE_TIMEOUT = "RECEIVE_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    BAD_RESPONSE = "BAD_RESPONSE"
    BAD_CERTIFICATE = "BAD_CERTIFICATE"
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    NOT_FOUND = "NOT_FOUND"
    NO_INTERNET = "NO_INTERNET"
    CANCELLED = "CANCELLED"
    UNEXPECTED = "UNEXPECTED"


DEFAULT_MESSAGES: dict[FailureKind, str] = {
    FailureKind.CONNECTION_TIMEOUT: "Connection timed out",
    FailureKind.SEND_TIMEOUT: "Sending the request timed out",
    FailureKind.RECEIVE_TIMEOUT: "Waiting for the response timed out",
    FailureKind.CONNECTION_ERROR: "Could not connect to the server",
    FailureKind.BAD_RESPONSE: "Invalid server response",
    FailureKind.BAD_CERTIFICATE: "Server certificate was rejected",
    FailureKind.UNAUTHORIZED: "Not authorized",
    FailureKind.BAD_REQUEST: "Request was rejected by the server",
    FailureKind.INTERNAL_SERVER_ERROR: "Internal server error",
    FailureKind.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
    FailureKind.NOT_FOUND: "Resource not found",
    FailureKind.NO_INTERNET: "No internet connection",
    FailureKind.CANCELLED: "Request cancelled",
    FailureKind.UNEXPECTED: "An unexpected error occurred",
}


class Failure(BaseModel):
    """Typed failure of a client call.

    Never mutated after construction. `response` keeps the raw envelope for
    diagnostics when one was received; `cause` keeps the exception behind a
    transport or hook failure.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: FailureKind = Field(description="Failure variant")
    message: str | None = Field(default=None, description="Human-readable message")
    response: InstanceOf[ResponseEnvelope] | None = Field(
        default=None, description="Raw response, if one was received"
    )
    request_id: str | None = Field(default=None, description="Correlation id")
    uri: str | None = Field(default=None, description="Originating URI")
    cause: InstanceOf[BaseException] | None = Field(
        default=None, exclude=True, description="Underlying exception, if any"
    )

    @property
    def error_message(self) -> str:
        """Message, or the default message for the kind."""
        return self.message or DEFAULT_MESSAGES[self.kind]

    @property
    def status_code(self) -> int | None:
        """Status code of the raw response, if any."""
        return self.response.status_code if self.response is not None else None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.error_message}"
