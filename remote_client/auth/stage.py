"""Auth stage: bearer token injection and 401 recovery."""

from dataclasses import replace

import structlog

from remote_client.auth.contracts import TokenProvider, UnauthorizedHandler
from remote_client.auth.refresh import TokenRefreshCoordinator
from remote_client.constants import (
    HEADER_AUTHORIZATION,
    HEADER_LOCALE,
    HTTP_STATUS_UNAUTHORIZED,
)
from remote_client.errors import RequestError
from remote_client.models.request import RequestDescriptor
from remote_client.pipeline.base import ErrorAction, Next, RequestAction, Resolve, Stage
from remote_client.pipeline.cancellation import run_cancellable
from remote_client.pipeline.context import RequestContext


logger = structlog.get_logger()


def with_bearer(request: RequestDescriptor, token: str) -> RequestDescriptor:
    """Return a copy carrying `Authorization: Bearer <token>` (case-insensitive replace)."""
    headers = {
        k: v for k, v in request.headers.items() if k.lower() != HEADER_AUTHORIZATION.lower()
    }
    headers[HEADER_AUTHORIZATION] = f"Bearer {token}"
    return replace(request, headers=headers)


class AuthStage(Stage):
    """Adds bearer tokens and recovers from 401 responses.

    A 401 triggers one single-flight token refresh and one replay of the
    request with the new token. A request that was already replayed is never
    refreshed again; the unauthorized handler runs and the error propagates.
    """

    name = "auth"

    def __init__(
        self,
        token_provider: TokenProvider,
        unauthorized_handler: UnauthorizedHandler,
        refresh: TokenRefreshCoordinator | None = None,
        locale: str | None = None,
    ) -> None:
        """Initialize the stage.

        Args:
            token_provider: Source of access tokens.
            unauthorized_handler: Called when a 401 cannot be recovered.
            refresh: Shared refresh coordinator; one is created if omitted.
            locale: Value for the locale header, if any.
        """
        super().__init__()
        self._provider = token_provider
        self._unauthorized_handler = unauthorized_handler
        self._refresh = refresh or TokenRefreshCoordinator(token_provider)
        self._locale = locale
        self._log = logger.bind(component="auth")

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        if self._locale:
            request = request.with_header(HEADER_LOCALE, self._locale)
        if await self._provider.has_valid_token():
            token = await self._provider.get_access_token()
            if token:
                request = with_bearer(request, token)
        return Next(request)

    async def on_error(self, error: RequestError, ctx: RequestContext) -> ErrorAction:
        if error.status_code != HTTP_STATUS_UNAUTHORIZED or error.request is None:
            return Next(error)

        if ctx.retried_after_refresh:
            self._log.warning("unauthorized_after_refresh", request_id=ctx.request_id)
            await self._notify_unauthorized(ctx)
            return Next(error)

        try:
            token = await run_cancellable(
                self._refresh.refresh(), ctx.cancel_token, error.request
            )
        except RequestError as exc:
            return Next(exc)

        if not token:
            await self._notify_unauthorized(ctx)
            return Next(error)

        ctx.retried_after_refresh = True
        replay = with_bearer(error.request, token)
        self._log.info("auth_replay", request_id=ctx.request_id)
        try:
            response = await self.downstream(replay, ctx)
        except RequestError as exc:
            if exc.status_code == HTTP_STATUS_UNAUTHORIZED:
                await self._notify_unauthorized(ctx)
            return Next(exc)
        return Resolve(response)

    async def _notify_unauthorized(self, ctx: RequestContext) -> None:
        try:
            await self._unauthorized_handler.handle_unauthorized()
        except Exception as exc:  # noqa: BLE001
            self._log.error(
                "unauthorized_handler_failed",
                request_id=ctx.request_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
