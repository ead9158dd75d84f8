"""Adapter between the pipeline and the transport."""

from dataclasses import replace

import structlog

from remote_client.errors import ErrorKind, RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from remote_client.observability.redact import redact_url_credentials
from remote_client.pipeline.cancellation import run_cancellable
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.metrics import PipelineMetrics
from remote_client.pipeline.state_machine import AttemptState
from remote_client.transport.base import Transport


logger = structlog.get_logger()


class Dispatcher:
    """Sends a request through the transport.

    Every send (first attempt, retry or auth replay) goes through here:
    - races the send against the caller's cancel token
    - turns non-2xx envelopes into BAD_RESPONSE errors
    - wraps unexpected transport exceptions as UNKNOWN errors
    - records metrics and attempt state
    """

    def __init__(self, transport: Transport, metrics: PipelineMetrics) -> None:
        self._transport = transport
        self._metrics = metrics
        self._log = logger.bind(component="dispatcher")

    @property
    def transport(self) -> Transport:
        """Underlying transport."""
        return self._transport

    async def send(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> ResponseEnvelope:
        """Send a request and return a 2xx envelope.

        Args:
            request: Final request descriptor.
            ctx: Request context.

        Returns:
            Response envelope with a 2xx status.

        Raises:
            RequestError: On transport failure, cancellation or non-2xx status.
        """
        ctx.state.transition(AttemptState.DISPATCHED)
        self._metrics.record_send()
        self._log.debug(
            "transport_send",
            request_id=ctx.request_id,
            method=request.method,
            url=redact_url_credentials(request.normalized_url),
            retry_count=ctx.retry_count,
            replay=ctx.retried_after_refresh,
        )

        try:
            response = await run_cancellable(
                self._transport.send(request), ctx.cancel_token, request
            )
        except RequestError as exc:
            if exc.request is None:
                exc.request = request
            if exc.response is not None:
                self._metrics.record_response(exc.response.status_code)
            ctx.state.transition(AttemptState.FAILED)
            raise
        except Exception as exc:  # noqa: BLE001
            ctx.state.transition(AttemptState.FAILED)
            raise RequestError(
                ErrorKind.UNKNOWN,
                f"Unexpected transport error: {exc}",
                request=request,
            ) from exc

        self._metrics.record_response(response.status_code)
        if response.request is None:
            response = replace(response, request=request)

        if not response.is_success:
            ctx.state.transition(AttemptState.FAILED)
            raise RequestError.bad_response(request, response)

        ctx.state.transition(AttemptState.SUCCEEDED)
        return response
