"""Retry stage: re-sends retryable failures with backoff."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from remote_client.errors import RequestError
from remote_client.models.request import RequestDescriptor
from remote_client.pipeline.base import ErrorAction, Next, RequestAction, Resolve, Stage
from remote_client.pipeline.cancellation import run_cancellable
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.metrics import PipelineMetrics
from remote_client.retry.policy import RetryPolicy


logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[None]]


class RetryStage(Stage):
    """Re-sends a failed request while the policy allows it.

    Retries go through the stages registered after this one and the
    transport. Deduplication and caching are never re-entered, so a retry is
    never shared with, or answered by, a concurrent fresh request.
    """

    name = "retry"

    def __init__(
        self,
        policy: RetryPolicy,
        metrics: PipelineMetrics | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the stage.

        Args:
            policy: Retry policy.
            metrics: Optional metrics sink.
            sleep: Awaitable sleep taking seconds (injectable for tests).
        """
        super().__init__()
        self._policy = policy
        self._metrics = metrics
        self._sleep = sleep
        self._log = logger.bind(component="retry")

    @property
    def policy(self) -> RetryPolicy:
        """Active retry policy."""
        return self._policy

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        ctx.retry_origin = request
        return Next(request)

    async def on_error(self, error: RequestError, ctx: RequestContext) -> ErrorAction:
        origin = ctx.retry_origin or error.request
        if origin is None:
            return Next(error)

        while not ctx.is_cancelled and self._policy.should_retry(error, ctx.retry_count):
            delay_ms = self._policy.delay_for(ctx.retry_count)
            self._log.info(
                "retry_attempt",
                request_id=ctx.request_id,
                attempt=ctx.retry_count + 1,
                max_retries=self._policy.max_retries,
                delay_ms=delay_ms,
                error_kind=error.kind.value,
                status_code=error.status_code,
            )
            try:
                await run_cancellable(
                    self._sleep(delay_ms / 1000.0), ctx.cancel_token, origin
                )
            except RequestError as exc:
                return Next(exc)

            ctx.retry_count += 1
            if self._metrics is not None:
                self._metrics.record_retry()

            try:
                response = await self.downstream(origin, ctx)
            except RequestError as exc:
                error = exc
                continue
            return Resolve(response)

        if ctx.retry_count > 0:
            self._log.warning(
                "retries_exhausted",
                request_id=ctx.request_id,
                retry_count=ctx.retry_count,
                error_kind=error.kind.value,
            )
        return Next(error)
