"""Deduplication stage: one transport call per fingerprint per window."""

from dataclasses import replace

import structlog

from remote_client.dedup.coordinator import DeduplicationCoordinator
from remote_client.errors import RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.pipeline.base import (
    ErrorAction,
    Next,
    Reject,
    RequestAction,
    Resolve,
    ResponseAction,
    Stage,
)
from remote_client.pipeline.cancellation import run_cancellable
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.metrics import PipelineMetrics


logger = structlog.get_logger()


class DeduplicationStage(Stage):
    """Shares one in-flight request between identical concurrent calls.

    The leader continues down the chain and settles the entry on the way
    back. Followers wait for the settlement and get their own copy of the
    response, or the leader's error. A cancelled leader settles with its
    cancellation, which followers receive as well.
    """

    name = "dedup"

    def __init__(
        self,
        coordinator: DeduplicationCoordinator,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        super().__init__()
        self._coordinator = coordinator
        self._metrics = metrics
        self._log = logger.bind(component="dedup")

    @property
    def coordinator(self) -> DeduplicationCoordinator:
        """Backing coordinator."""
        return self._coordinator

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        if ctx.skip_deduplication:
            return Next(request)
        key = self._coordinator.key_for(request)
        if key is None:
            return Next(request)

        ticket = self._coordinator.begin(key)
        if ticket.is_leader:
            ctx.dedup_key = key
            ctx.dedup_entry = ticket.entry
            return Next(request)

        self._log.debug("dedup_join", request_id=ctx.request_id, key=key)
        if self._metrics is not None:
            self._metrics.record_dedup_join()
        try:
            response = await run_cancellable(ticket.join(), ctx.cancel_token, request)
        except RequestError as exc:
            if exc.request is not request:
                return Reject(_follower_error(exc, request))
            return Reject(exc)
        return Resolve(replace(response, request=request))

    async def on_response(
        self, response: ResponseEnvelope, ctx: RequestContext
    ) -> ResponseAction:
        self._settle(ctx, response=response)
        return Next(response)

    async def on_error(self, error: RequestError, ctx: RequestContext) -> ErrorAction:
        self._settle(ctx, error=error)
        return Next(error)

    def release(self, ctx: RequestContext) -> None:
        self._settle(ctx, error=RequestError.cancelled(None, "leader task cancelled"))

    def _settle(
        self,
        ctx: RequestContext,
        response: ResponseEnvelope | None = None,
        error: RequestError | None = None,
    ) -> None:
        entry = ctx.dedup_entry
        if entry is None:
            return
        self._coordinator.settle(entry, response=response, error=error)
        ctx.dedup_entry = None
        ctx.dedup_key = None


def _follower_error(error: RequestError, request: RequestDescriptor) -> RequestError:
    """Give a follower its own copy of the leader's error."""
    response = error.response.copy() if error.response is not None else None
    copied = RequestError(error.kind, error.message, request=request, response=response)
    copied.__cause__ = error
    return copied
