"""Transformation stage: applies TransformationHooks."""

import inspect
from typing import Any

import structlog

from remote_client.errors import ErrorKind, RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.pipeline.base import (
    Next,
    Reject,
    RequestAction,
    ResponseAction,
    Stage,
)
from remote_client.pipeline.context import RequestContext
from remote_client.transform.hooks import TransformationHooks


logger = structlog.get_logger()


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class TransformationStage(Stage):
    """Runs the request hook on the way out and the response hook on the way back.

    A hook that raises aborts the request with a PIPELINE error chained to
    the original exception. Response transformation replaces only the body.
    """

    name = "transform"

    def __init__(self, hooks: TransformationHooks) -> None:
        super().__init__()
        self._hooks = hooks
        self._log = logger.bind(component="transform")

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        hook = self._hooks.transform_request
        if hook is None:
            return Next(request)
        try:
            body = await _resolve(hook(request.path, request.body, request))
        except Exception as exc:  # noqa: BLE001
            return Reject(self._failure("Request transformation failed", exc, request, ctx))
        return Next(request.with_body(body))

    async def on_response(
        self, response: ResponseEnvelope, ctx: RequestContext
    ) -> ResponseAction:
        hook = self._hooks.transform_response
        if hook is None:
            return Next(response)
        endpoint = response.request.path if response.request is not None else ""
        try:
            body = await _resolve(hook(endpoint, response))
        except Exception as exc:  # noqa: BLE001
            return Reject(
                self._failure("Response transformation failed", exc, response.request, ctx)
            )
        return Next(response.with_body(body))

    def _failure(
        self,
        prefix: str,
        exc: Exception,
        request: RequestDescriptor | None,
        ctx: RequestContext,
    ) -> RequestError:
        self._log.error(
            "transform_failed",
            request_id=ctx.request_id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        error = RequestError(ErrorKind.PIPELINE, f"{prefix}: {exc}", request=request)
        error.__cause__ = exc
        return error
