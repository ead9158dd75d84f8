"""Cache stage: answers from the store and populates it."""

from dataclasses import replace

import structlog

from remote_client.cache.store import CacheStore
from remote_client.errors import RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.pipeline.base import (
    Next,
    Reject,
    RequestAction,
    Resolve,
    ResponseAction,
    Stage,
)
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.metrics import PipelineMetrics


logger = structlog.get_logger()


class CacheStage(Stage):
    """Short-circuits cacheable requests with a live cached response.

    Misses record the key on the context; a 2xx response for that key is
    stored on the way back. Cancelled requests and errors are never stored.
    """

    name = "cache"

    def __init__(self, store: CacheStore, metrics: PipelineMetrics | None = None) -> None:
        super().__init__()
        self._store = store
        self._metrics = metrics
        self._log = logger.bind(component="cache")

    @property
    def store(self) -> CacheStore:
        """Backing store."""
        return self._store

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        if ctx.is_cancelled:
            reason = ctx.cancel_token.reason if ctx.cancel_token is not None else None
            return Reject(RequestError.cancelled(request, reason))
        if ctx.skip_cache:
            return Next(request)
        key = self._store.key_for(request)
        if key is None:
            return Next(request)

        entry = self._store.get(key)
        if entry is not None:
            self._log.debug("cache_hit", request_id=ctx.request_id, key=key)
            if self._metrics is not None:
                self._metrics.record_cache_hit()
            return Resolve(replace(entry.response.copy(), request=request))

        ctx.cache_key = key
        return Next(request)

    async def on_response(
        self, response: ResponseEnvelope, ctx: RequestContext
    ) -> ResponseAction:
        if ctx.cache_key is not None and response.is_success and not ctx.is_cancelled:
            self._store.put(ctx.cache_key, response)
            self._log.debug("cache_store", request_id=ctx.request_id, key=ctx.cache_key)
        return Next(response)
