"""Maps pipeline errors and parsed responses onto Failure values."""

import errno
import socket
from collections.abc import Mapping
from typing import TypeVar

from remote_client.errors import ErrorKind, RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.models.response import BaseResponse
from remote_client.result.either import Either, Left, Right
from remote_client.result.failure import Failure, FailureKind


T = TypeVar("T")

SUCCESS_STATUS_CODES = frozenset({200, 201, 202, 204})

# Status code -> failure kind for error responses
STATUS_FAILURE_KINDS: dict[int, FailureKind] = {
    400: FailureKind.BAD_REQUEST,
    401: FailureKind.UNAUTHORIZED,
    403: FailureKind.UNAUTHORIZED,
    404: FailureKind.NOT_FOUND,
    422: FailureKind.BAD_REQUEST,
    500: FailureKind.INTERNAL_SERVER_ERROR,
    503: FailureKind.SERVICE_UNAVAILABLE,
}

_ERROR_KIND_FAILURES: dict[ErrorKind, FailureKind] = {
    ErrorKind.CONNECTION_TIMEOUT: FailureKind.CONNECTION_TIMEOUT,
    ErrorKind.SEND_TIMEOUT: FailureKind.SEND_TIMEOUT,
    ErrorKind.RECEIVE_TIMEOUT: FailureKind.RECEIVE_TIMEOUT,
    ErrorKind.BAD_CERTIFICATE: FailureKind.BAD_CERTIFICATE,
    ErrorKind.PIPELINE: FailureKind.UNEXPECTED,
}

_OFFLINE_ERRNOS = frozenset({errno.ENETUNREACH, errno.ENETDOWN, errno.EHOSTUNREACH})


def is_offline_error(error: BaseException) -> bool:
    """Check the cause chain for DNS or unreachable-network failures."""
    current: BaseException | None = error
    while current is not None:
        if isinstance(current, socket.gaierror):
            return True
        if isinstance(current, OSError) and current.errno in _OFFLINE_ERRNOS:
            return True
        current = current.__cause__ or current.__context__
    return False


class ErrorHandler:
    """Converts `RequestError` into `Failure` and validates parsed responses."""

    def __init__(self, base_url: str | None = None) -> None:
        """Initialize the handler.

        Args:
            base_url: Used to report absolute URIs for relative paths.
        """
        self._base_url = base_url

    def handle_error(self, error: RequestError, request_id: str | None = None) -> Failure:
        """Map a pipeline error to a failure.

        Args:
            error: Error raised by the pipeline.
            request_id: Correlation id of the call.

        Returns:
            Failure carrying the request id and originating URI.
        """
        uri = self.uri_for(error.request)
        rid = f" [Request ID: {request_id}]" if request_id else ""

        def build_message(base: str) -> str:
            message = base + rid
            if uri:
                return f"{message} [URI: {uri}]"
            return message

        if error.kind is ErrorKind.BAD_RESPONSE:
            return self._bad_response(error.response, rid, request_id, uri)

        if error.kind is ErrorKind.CANCELLED:
            kind = FailureKind.CANCELLED
            message = f"{error.message}{rid}"
        elif error.kind in _ERROR_KIND_FAILURES:
            kind = _ERROR_KIND_FAILURES[error.kind]
            message = build_message(error.message)
        elif is_offline_error(error):
            kind = FailureKind.NO_INTERNET
            message = f"Network error, please check your internet connection{rid}"
        else:
            kind = FailureKind.CONNECTION_ERROR
            message = build_message(error.message)

        return Failure(
            kind=kind,
            message=message,
            response=error.response,
            request_id=request_id or None,
            uri=uri,
            cause=error.__cause__,
        )

    def validate_response(
        self,
        response: BaseResponse[T],
        request_id: str | None = None,
        request: RequestDescriptor | None = None,
        envelope: ResponseEnvelope | None = None,
    ) -> Either[Failure, BaseResponse[T]]:
        """Validate the status of a parsed response.

        Args:
            response: Parsed response.
            request_id: Correlation id of the call.
            request: Request the response answers; used for the failure URI.
            envelope: Raw response kept on the failure for diagnostics.

        Returns:
            Right for 200/201/202/204, otherwise Left with the mapped failure.
        """
        status = response.status_code
        if status in SUCCESS_STATUS_CODES:
            return Right(response)

        kind = STATUS_FAILURE_KINDS.get(status, FailureKind.BAD_RESPONSE)
        if kind is FailureKind.SERVICE_UNAVAILABLE:
            message: str | None = f"Service temporarily unavailable. {response.message or ''}"
        elif kind is FailureKind.BAD_RESPONSE:
            message = f"Unknown error: {response.message or ''}"
        else:
            message = response.message
        return Left(
            Failure(
                kind=kind,
                message=message,
                response=envelope,
                request_id=request_id or None,
                uri=self.uri_for(request),
            )
        )

    def uri_for(self, request: RequestDescriptor | None) -> str | None:
        """Absolute URI of a request, when it can be determined."""
        if request is None:
            return None
        url = request.normalized_url
        if url.startswith(("http://", "https://")) or not self._base_url:
            return url
        return f"{self._base_url.rstrip('/')}/{url.lstrip('/')}"

    def _bad_response(
        self,
        response: ResponseEnvelope | None,
        rid: str,
        request_id: str | None,
        uri: str | None,
    ) -> Failure:
        message: str | None = None
        if response is not None and isinstance(response.body, Mapping):
            body_message = response.body.get("message")
            if isinstance(body_message, str):
                message = body_message
        if message is None:
            message = (response.reason_phrase if response is not None else "") or (
                "Invalid server response"
            )

        status_context = f" [Status: {response.status_code}]" if response is not None else ""
        status = response.status_code if response is not None else None
        kind = (
            STATUS_FAILURE_KINDS.get(status, FailureKind.BAD_RESPONSE)
            if status is not None
            else FailureKind.BAD_RESPONSE
        )
        return Failure(
            kind=kind,
            message=f"{message}{rid}{status_context}",
            response=response,
            request_id=request_id or None,
            uri=uri,
        )
