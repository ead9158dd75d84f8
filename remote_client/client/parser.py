"""Parsers that turn a response envelope into a BaseResponse."""

from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeVar

import structlog

from remote_client.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN
from remote_client.models.request import ResponseEnvelope
from remote_client.models.response import BaseResponse


logger = structlog.get_logger()

T = TypeVar("T")

Decoder = Callable[[Any], T]


class ResponseParser(Protocol):
    """Turns an envelope into a typed BaseResponse."""

    def parse(
        self, response: ResponseEnvelope, decode: Decoder[T] | None = None
    ) -> BaseResponse[T]:
        """Parse a response.

        Args:
            response: Envelope returned by the pipeline.
            decode: Optional payload decoder.

        Returns:
            Parsed response.
        """
        ...


def _decode(raw: Any, decode: Decoder[T] | None) -> Any:
    """Apply the decoder; a failing decoder leaves the payload empty."""
    if raw is None or decode is None:
        return raw
    try:
        return decode(raw)
    except Exception as exc:  # noqa: BLE001
        logger.debug("payload_decode_failed", error=str(exc), error_type=type(exc).__name__)
        return None


class DefaultResponseParser:
    """Parser for wrapped payloads.

    Expects bodies shaped like::

        {"success": true, "data": ..., "message": "...", "meta": {...}}
    """

    def __init__(
        self,
        data_key: str = "data",
        success_key: str = "success",
        message_key: str = "message",
        meta_key: str = "meta",
        default_success: bool = True,
    ) -> None:
        self.data_key = data_key
        self.success_key = success_key
        self.message_key = message_key
        self.meta_key = meta_key
        self.default_success = default_success

    def parse(
        self, response: ResponseEnvelope, decode: Decoder[T] | None = None
    ) -> BaseResponse[T]:
        body = response.body
        if not isinstance(body, Mapping):
            return BaseResponse(status_code=response.status_code, success=self.default_success)

        success = body.get(self.success_key)
        message = body.get(self.message_key)
        meta = body.get(self.meta_key)
        return BaseResponse(
            status_code=response.status_code,
            success=success if isinstance(success, bool) else self.default_success,
            data=_decode(body.get(self.data_key), decode),
            message=message if isinstance(message, str) else None,
            meta=meta if isinstance(meta, Mapping) else None,
        )


class DirectResponseParser:
    """Parser for APIs that return the payload itself, unwrapped."""

    def parse(
        self, response: ResponseEnvelope, decode: Decoder[T] | None = None
    ) -> BaseResponse[T]:
        return BaseResponse(
            status_code=response.status_code,
            success=HTTP_STATUS_OK_MIN <= response.status_code < HTTP_STATUS_OK_MAX,
            data=_decode(response.body, decode),
        )
