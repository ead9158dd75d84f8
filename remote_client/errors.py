"""Transport-level error raised inside the pipeline.

`RequestError` never crosses the public client boundary; the facade converts
it into a `Failure` through the error handler.
"""

from enum import Enum

from remote_client.models.request import RequestDescriptor, ResponseEnvelope


class ErrorKind(str, Enum):
    """Classification of pipeline errors for retry and failure mapping.

    - CONNECTION_TIMEOUT: Could not connect in time
    - SEND_TIMEOUT: Request body upload timed out
    - RECEIVE_TIMEOUT: Response did not arrive in time
    - CONNECTION_ERROR: Connection failed or dropped
    - BAD_CERTIFICATE: TLS certificate rejected
    - BAD_RESPONSE: Response arrived with a non-2xx status
    - CANCELLED: Request was cancelled by the caller
    - PIPELINE: A stage (e.g. a transformation hook) failed
    - UNKNOWN: Unclassified transport error
    """

    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    SEND_TIMEOUT = "SEND_TIMEOUT"
    RECEIVE_TIMEOUT = "RECEIVE_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    BAD_CERTIFICATE = "BAD_CERTIFICATE"
    BAD_RESPONSE = "BAD_RESPONSE"
    CANCELLED = "CANCELLED"
    PIPELINE = "PIPELINE"
    UNKNOWN = "UNKNOWN"


TIMEOUT_KINDS = frozenset(
    {
        ErrorKind.CONNECTION_TIMEOUT,
        ErrorKind.SEND_TIMEOUT,
        ErrorKind.RECEIVE_TIMEOUT,
    }
)


class RequestError(Exception):
    """Error raised by the transport or a pipeline stage.

    Attributes:
        kind: Error classification.
        request: Request descriptor that failed.
        response: Response envelope, for BAD_RESPONSE errors.
        message: Human-readable message.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        request: RequestDescriptor | None = None,
        response: ResponseEnvelope | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            kind: Error classification.
            message: Human-readable message.
            request: Request descriptor that failed.
            response: Response envelope, if one was received.
        """
        self.kind = kind
        self.message = message
        self.request = request
        self.response = response
        super().__init__(message)

    @property
    def status_code(self) -> int | None:
        """Status code of the attached response, if any."""
        return self.response.status_code if self.response is not None else None

    @classmethod
    def bad_response(
        cls, request: RequestDescriptor, response: ResponseEnvelope
    ) -> "RequestError":
        """Build the error for a response with a non-2xx status."""
        return cls(
            ErrorKind.BAD_RESPONSE,
            f"Request failed with status {response.status_code}",
            request=request,
            response=response,
        )

    @classmethod
    def cancelled(
        cls, request: RequestDescriptor | None, reason: str | None = None
    ) -> "RequestError":
        """Build the error for a cancelled request."""
        message = "Request cancelled"
        if reason:
            message = f"{message}: {reason}"
        return cls(ErrorKind.CANCELLED, message, request=request)
