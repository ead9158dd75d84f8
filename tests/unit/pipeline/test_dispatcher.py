"""Tests for the dispatcher, cancellation racing and metrics."""

import asyncio

import pytest

from remote_client.errors import ErrorKind, RequestError
from remote_client.models.cancel import CancelToken
from remote_client.pipeline import (
    AttemptState,
    Dispatcher,
    PipelineMetrics,
    run_cancellable,
)
from remote_client.result.failure import FailureKind
from tests.helpers.fakes import (
    ScriptedTransport,
    json_response,
    make_context,
    make_request,
    transport_error,
)


class ExplodingTransport:
    """Transport that raises a non-RequestError exception."""

    async def send(self, request):
        raise OSError("socket closed")

    async def aclose(self) -> None:
        return None


class TestDispatcher:
    """Tests for Dispatcher.send."""

    @pytest.mark.asyncio
    async def test_success_attaches_request(self) -> None:
        """Test a 2xx envelope and the recorded metrics."""
        metrics = PipelineMetrics()
        dispatcher = Dispatcher(ScriptedTransport(json_response(200, {"ok": 1})), metrics)
        ctx = make_context()
        request = make_request()

        response = await dispatcher.send(request, ctx)

        assert response.body == {"ok": 1}
        assert response.request == request
        assert ctx.state.state is AttemptState.SUCCEEDED
        assert metrics.transport_sends_total == 1
        assert metrics.requests_total == {200: 1}

    @pytest.mark.asyncio
    async def test_non_2xx_becomes_bad_response(self) -> None:
        """Test that error statuses raise BAD_RESPONSE with the envelope."""
        dispatcher = Dispatcher(ScriptedTransport(json_response(404, {"e": 1})), PipelineMetrics())
        ctx = make_context()

        with pytest.raises(RequestError) as exc_info:
            await dispatcher.send(make_request(), ctx)

        assert exc_info.value.kind is ErrorKind.BAD_RESPONSE
        assert exc_info.value.status_code == 404
        assert exc_info.value.response.body == {"e": 1}
        assert ctx.state.state is AttemptState.FAILED

    @pytest.mark.asyncio
    async def test_transport_errors_pass_through(self) -> None:
        """Test that classified transport errors keep their kind."""
        transport = ScriptedTransport(transport_error(ErrorKind.RECEIVE_TIMEOUT))
        dispatcher = Dispatcher(transport, PipelineMetrics())

        with pytest.raises(RequestError) as exc_info:
            await dispatcher.send(make_request(), make_context())

        assert exc_info.value.kind is ErrorKind.RECEIVE_TIMEOUT
        assert exc_info.value.request is not None

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_unknown(self) -> None:
        """Test wrapping of arbitrary transport exceptions."""
        dispatcher = Dispatcher(ExplodingTransport(), PipelineMetrics())

        with pytest.raises(RequestError) as exc_info:
            await dispatcher.send(make_request(), make_context())

        assert exc_info.value.kind is ErrorKind.UNKNOWN
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_cancel_token_interrupts_send(self) -> None:
        """Test that cancelling mid-send yields CANCELLED."""
        transport = ScriptedTransport(json_response(200))
        transport.gate = asyncio.Event()
        token = CancelToken()
        dispatcher = Dispatcher(transport, PipelineMetrics())

        pending = asyncio.ensure_future(
            dispatcher.send(make_request(), make_context(cancel_token=token))
        )
        while transport.call_count == 0:
            await asyncio.sleep(0)
        token.cancel("user left")

        with pytest.raises(RequestError) as exc_info:
            await pending

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert "user left" in exc_info.value.message


class TestRunCancellable:
    """Tests for run_cancellable."""

    @pytest.mark.asyncio
    async def test_without_token(self) -> None:
        """Test plain awaiting when no token is given."""

        async def work() -> int:
            return 7

        assert await run_cancellable(work(), None) == 7

    @pytest.mark.asyncio
    async def test_already_cancelled_token(self) -> None:
        """Test that work never starts for a cancelled token."""
        started = False

        async def work() -> None:
            nonlocal started
            started = True

        token = CancelToken()
        token.cancel()

        with pytest.raises(RequestError) as exc_info:
            await run_cancellable(work(), token)

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert not started

    @pytest.mark.asyncio
    async def test_completes_before_cancel(self) -> None:
        """Test that finished work wins over a live token."""

        async def work() -> str:
            return "done"

        assert await run_cancellable(work(), CancelToken()) == "done"


class TestPipelineMetrics:
    """Tests for PipelineMetrics."""

    def test_counters_and_average(self) -> None:
        """Test counter updates and the serialized form."""
        metrics = PipelineMetrics()
        metrics.record_response(200)
        metrics.record_response(200)
        metrics.record_response(503)
        metrics.record_failure(FailureKind.SERVICE_UNAVAILABLE)
        metrics.record_completion(10.0)
        metrics.record_completion(30.0)

        data = metrics.to_dict()

        assert data["requests_total"] == {200: 2, 503: 1}
        assert data["failures_total"] == {"SERVICE_UNAVAILABLE": 1}
        assert metrics.avg_duration_ms == 20.0

    def test_average_without_calls(self) -> None:
        """Test the average for an unused client."""
        assert PipelineMetrics().avg_duration_ms == 0.0
