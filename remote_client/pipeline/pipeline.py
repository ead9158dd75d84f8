"""Ordered stage chain wrapped around the dispatcher."""

import asyncio
import functools
from collections.abc import Awaitable, Sequence
from typing import TypeVar

import structlog

from remote_client.errors import ErrorKind, RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.pipeline.base import Next, Reject, Resolve, Stage
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.dispatcher import Dispatcher
from remote_client.pipeline.state_machine import AttemptState


logger = structlog.get_logger()

A = TypeVar("A")


class RequestPipeline:
    """Runs requests through an ordered list of stages.

    `on_request` hooks run in registration order. Once the chain reaches
    the dispatcher (or a stage short-circuits), `on_response`/`on_error`
    hooks run in reverse order over the stages whose `on_request` passed
    the request on. A stage that short-circuits is not unwound itself.

    Each stage is bound to a runner for the stages after it, so a stage
    can re-send a request without going back through earlier stages.
    """

    def __init__(self, stages: Sequence[Stage], dispatcher: Dispatcher) -> None:
        """Initialize the pipeline.

        Args:
            stages: Stages in request-phase order.
            dispatcher: Sends the final request to the transport.
        """
        self._stages = list(stages)
        self._dispatcher = dispatcher
        for index, stage in enumerate(self._stages):
            stage.bind(functools.partial(self._run, index + 1))
        self._log = logger.bind(component="pipeline")

    @property
    def stages(self) -> list[Stage]:
        """Registered stages, in request-phase order."""
        return list(self._stages)

    async def execute(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> ResponseEnvelope:
        """Run a request through every stage and the transport.

        Args:
            request: Outbound request.
            ctx: Context for this call.

        Returns:
            Successful response envelope.

        Raises:
            RequestError: Final error after every stage had its say.
        """
        try:
            response = await self._run(0, request, ctx)
        except RequestError:
            ctx.state.settle(succeeded=False)
            ctx.state.transition(AttemptState.DELIVERED)
            raise
        ctx.state.settle(succeeded=True)
        ctx.state.transition(AttemptState.DELIVERED)
        return response

    async def _run(
        self, start: int, request: RequestDescriptor, ctx: RequestContext
    ) -> ResponseEnvelope:
        """Run stages from `start` onwards, then unwind the entered ones."""
        entered: list[Stage] = []
        response: ResponseEnvelope | None = None
        error: RequestError | None = None

        try:
            for stage in self._stages[start:]:
                try:
                    action = await self._call(
                        stage, "on_request", stage.on_request(request, ctx), request
                    )
                except RequestError as exc:
                    action = Reject(exc)

                if isinstance(action, Next):
                    request = action.value
                    entered.append(stage)
                    continue
                if isinstance(action, Resolve):
                    response = action.response
                    ctx.state.settle(succeeded=True)
                else:
                    error = action.error
                    ctx.state.settle(succeeded=False)
                break
            else:
                try:
                    response = await self._dispatcher.send(request, ctx)
                except RequestError as exc:
                    error = exc

            for stage in reversed(entered):
                if error is None:
                    assert response is not None
                    try:
                        response_action = await self._call(
                            stage, "on_response", stage.on_response(response, ctx), request
                        )
                    except RequestError as exc:
                        response_action = Reject(exc)
                    if isinstance(response_action, Reject):
                        error = response_action.error
                        response = None
                        ctx.state.settle(succeeded=False)
                    else:
                        response = response_action.value
                else:
                    try:
                        error_action = await self._call(
                            stage, "on_error", stage.on_error(error, ctx), request
                        )
                    except RequestError as exc:
                        error_action = Next(exc)
                    if isinstance(error_action, Resolve):
                        response = error_action.response
                        error = None
                        ctx.state.settle(succeeded=True)
                    else:
                        error = error_action.value
        except asyncio.CancelledError:
            for stage in reversed(entered):
                stage.release(ctx)
            raise

        if error is not None:
            raise error
        assert response is not None
        return response

    async def _call(
        self,
        stage: Stage,
        hook: str,
        pending: Awaitable[A],
        request: RequestDescriptor,
    ) -> A:
        """Await a stage hook, wrapping unexpected exceptions as PIPELINE errors."""
        try:
            return await pending
        except (RequestError, asyncio.CancelledError):
            raise
        except Exception as exc:  # noqa: BLE001
            self._log.error(
                "stage_failed",
                stage=stage.name,
                hook=hook,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise RequestError(
                ErrorKind.PIPELINE,
                f"Stage {stage.name!r} failed in {hook}: {exc}",
                request=request,
            ) from exc
