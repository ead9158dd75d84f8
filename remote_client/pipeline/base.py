"""Stage contract for the request pipeline.

A stage sees the request on the way out (`on_request`, forward order) and the
response or error on the way back (`on_response` / `on_error`, reverse order).
Each hook returns an action telling the pipeline how to continue.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from remote_client.errors import RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.pipeline.context import RequestContext


V = TypeVar("V")

Downstream = Callable[[RequestDescriptor, RequestContext], Awaitable[ResponseEnvelope]]


@dataclass(frozen=True)
class Next(Generic[V]):
    """Continue with the (possibly replaced) value."""

    value: V


@dataclass(frozen=True)
class Resolve:
    """Finish with a response.

    From `on_request`, short-circuits the rest of the chain and the transport.
    From `on_error`, recovers the error.
    """

    response: ResponseEnvelope


@dataclass(frozen=True)
class Reject:
    """Finish with an error."""

    error: RequestError


RequestAction = Next[RequestDescriptor] | Resolve | Reject
ResponseAction = Next[ResponseEnvelope] | Reject
ErrorAction = Next[RequestError] | Resolve


class Stage:
    """Base class for pipeline stages. Every hook defaults to pass-through.

    The pipeline calls `bind` once at construction with a callable that runs
    the stages registered after this one and then the transport. Stages that
    re-send (retry, auth replay) use it instead of re-entering the pipeline.
    """

    name: str = "stage"

    def __init__(self) -> None:
        self._downstream: Downstream | None = None

    def bind(self, downstream: Downstream) -> None:
        """Attach the downstream runner."""
        self._downstream = downstream

    @property
    def downstream(self) -> Downstream:
        """Runner for the stages after this one plus the transport."""
        if self._downstream is None:
            msg = f"Stage {self.name!r} is not bound to a pipeline"
            raise RuntimeError(msg)
        return self._downstream

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        """Process an outbound request."""
        return Next(request)

    async def on_response(
        self, response: ResponseEnvelope, ctx: RequestContext
    ) -> ResponseAction:
        """Process an inbound response."""
        return Next(response)

    async def on_error(self, error: RequestError, ctx: RequestContext) -> ErrorAction:
        """Process an inbound error."""
        return Next(error)

    def release(self, ctx: RequestContext) -> None:
        """Release per-request state when the calling task is cancelled.

        Runs synchronously, in reverse order, for every stage whose
        `on_request` passed the request on.
        """
