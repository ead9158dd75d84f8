"""Logging stage: outermost observer of requests, responses and errors."""

from typing import Any

import structlog

from remote_client.errors import RequestError
from remote_client.models.request import FormData, RequestDescriptor, ResponseEnvelope
from remote_client.observability.logging import get_logger
from remote_client.observability.redact import (
    redact_body,
    redact_headers,
    redact_url_credentials,
)
from remote_client.pipeline.base import (
    ErrorAction,
    Next,
    RequestAction,
    ResponseAction,
    Stage,
)
from remote_client.pipeline.context import RequestContext


def _describe_body(body: Any) -> Any:
    if isinstance(body, bytes):
        return f"<{len(body)} bytes>"
    if isinstance(body, FormData):
        return {
            "fields": sorted(body.fields),
            "files": [f.filename for f in body.files],
        }
    return redact_body(body)


class LoggingStage(Stage):
    """Logs the final outbound request and the raw inbound outcome.

    Registered last, so it sees the request after every other stage and the
    response or error before any of them. Sensitive headers, URL
    credentials and secret body fields are always redacted.
    """

    name = "logging"

    def __init__(
        self,
        log_body: bool = False,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the stage.

        Args:
            log_body: Include request and response bodies.
            log: Logger to write to; a fresh structlog logger by default.
        """
        super().__init__()
        self._log_body = log_body
        self._log = (log or get_logger()).bind(component="http")

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        fields: dict[str, Any] = {
            "request_id": ctx.request_id,
            "method": request.method,
            "url": redact_url_credentials(request.normalized_url),
            "headers": redact_headers(request.headers),
            "retry_count": ctx.retry_count,
        }
        if self._log_body and request.body is not None:
            fields["body"] = _describe_body(request.body)
        self._log.info("request_start", **fields)
        return Next(request)

    async def on_response(
        self, response: ResponseEnvelope, ctx: RequestContext
    ) -> ResponseAction:
        fields: dict[str, Any] = {
            "request_id": ctx.request_id,
            "status_code": response.status_code,
            "duration_ms": round(ctx.elapsed_ms, 2),
        }
        if self._log_body and response.body is not None:
            fields["body"] = _describe_body(response.body)
        self._log.info("request_complete", **fields)
        return Next(response)

    async def on_error(self, error: RequestError, ctx: RequestContext) -> ErrorAction:
        self._log.warning(
            "request_failed",
            request_id=ctx.request_id,
            error_kind=error.kind.value,
            status_code=error.status_code,
            error=error.message,
            duration_ms=round(ctx.elapsed_ms, 2),
        )
        return Next(error)
