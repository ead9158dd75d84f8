"""Single-flight token refresh."""

import asyncio

import structlog

from remote_client.auth.contracts import TokenProvider
from remote_client.pipeline.metrics import PipelineMetrics


logger = structlog.get_logger()


class TokenRefreshCoordinator:
    """Runs at most one token refresh at a time.

    Concurrent callers await the same outstanding refresh. A failed refresh
    resolves to None for every waiter. The shared handle is cleared one loop
    iteration after it settles, so waiters already scheduled observe the
    result before a new refresh can start.
    """

    def __init__(
        self, provider: TokenProvider, metrics: PipelineMetrics | None = None
    ) -> None:
        self._provider = provider
        self._metrics = metrics
        self._inflight: asyncio.Future[str | None] | None = None
        self._task: asyncio.Task[None] | None = None
        self._log = logger.bind(component="auth")

    @property
    def is_refreshing(self) -> bool:
        """Check if a refresh handle is outstanding."""
        return self._inflight is not None

    async def refresh(self) -> str | None:
        """Join the outstanding refresh or start a new one.

        Returns:
            New token, or None if the refresh failed.
        """
        if self._inflight is None:
            loop = asyncio.get_running_loop()
            self._inflight = loop.create_future()
            self._task = loop.create_task(self._run(self._inflight))
        return await asyncio.shield(self._inflight)

    async def _run(self, future: "asyncio.Future[str | None]") -> None:
        token: str | None = None
        try:
            if self._metrics is not None:
                self._metrics.record_token_refresh()
            token = await self._provider.refresh_token()
            if token:
                self._log.info("token_refreshed")
            else:
                self._log.warning("token_refresh_empty")
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                "token_refresh_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            token = None
        finally:
            if not future.done():
                future.set_result(token or None)
            asyncio.get_running_loop().call_soon(self._clear, future)

    def _clear(self, future: "asyncio.Future[str | None]") -> None:
        if self._inflight is future:
            self._inflight = None
            self._task = None
