"""Tests for the retry stage."""

import asyncio

import pytest

from remote_client.errors import ErrorKind, RequestError
from remote_client.models import CancelToken
from remote_client.models.request import RequestDescriptor
from remote_client.pipeline import PipelineMetrics, Stage
from remote_client.pipeline.base import Next, RequestAction
from remote_client.pipeline.context import RequestContext
from remote_client.retry import RetryPolicy, RetryStage
from tests.helpers.fakes import (
    RecordingSleep,
    ScriptedTransport,
    build_pipeline,
    json_response,
    make_context,
    make_request,
    transport_error,
)


def no_jitter(**kwargs: object) -> RetryPolicy:
    """Deterministic policy."""
    return RetryPolicy(use_jitter=False, **kwargs)  # type: ignore[arg-type]


class CountingStage(Stage):
    """Counts how often its request hook runs."""

    name = "counting"

    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def on_request(
        self, request: RequestDescriptor, ctx: RequestContext
    ) -> RequestAction:
        self.calls += 1
        return Next(request)


class TestRetryStage:
    """Tests for RetryStage."""

    @pytest.mark.asyncio
    async def test_recovers_after_two_503s(self, sleep: RecordingSleep) -> None:
        """Test 503, 503, 200 resolves after exactly two delays."""
        transport = ScriptedTransport(
            json_response(503), json_response(503), json_response(200, {"ok": True})
        )
        metrics = PipelineMetrics()
        pipeline = build_pipeline(
            [RetryStage(no_jitter(), metrics, sleep=sleep)], transport, metrics
        )
        ctx = make_context()

        response = await pipeline.execute(make_request(), ctx)

        assert response.status_code == 200
        assert transport.call_count == 3
        assert sleep.delays == [1.0, 2.0]
        assert ctx.retry_count == 2
        assert metrics.retries_total == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_retries", [0, 1, 3])
    async def test_retry_cap(self, sleep: RecordingSleep, max_retries: int) -> None:
        """Test that exactly max_retries retries happen before failing."""
        transport = ScriptedTransport(json_response(503))
        pipeline = build_pipeline(
            [RetryStage(no_jitter(max_retries=max_retries), sleep=sleep)], transport
        )

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context())

        assert exc_info.value.status_code == 503
        assert transport.call_count == max_retries + 1
        assert len(sleep.delays) == max_retries

    @pytest.mark.asyncio
    async def test_no_retry_on_404(self, sleep: RecordingSleep) -> None:
        """Test that a 404 is surfaced immediately."""
        transport = ScriptedTransport(json_response(404))
        pipeline = build_pipeline([RetryStage(RetryPolicy(), sleep=sleep)], transport)

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context())

        assert exc_info.value.status_code == 404
        assert transport.call_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, sleep: RecordingSleep) -> None:
        """Test that transport errors are retried."""
        transport = ScriptedTransport(
            transport_error(ErrorKind.CONNECTION_ERROR), json_response(200)
        )
        pipeline = build_pipeline([RetryStage(no_jitter(), sleep=sleep)], transport)

        response = await pipeline.execute(make_request(), make_context())

        assert response.status_code == 200
        assert transport.call_count == 2

    @pytest.mark.asyncio
    async def test_resends_through_later_stages_only(self, sleep: RecordingSleep) -> None:
        """Test that retries re-run stages after the retry stage but not before."""
        before, after = CountingStage(), CountingStage()
        transport = ScriptedTransport(json_response(500), json_response(200))
        pipeline = build_pipeline(
            [before, RetryStage(no_jitter(), sleep=sleep), after], transport
        )

        await pipeline.execute(make_request(), make_context())

        assert before.calls == 1
        assert after.calls == 2

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_retrying(self) -> None:
        """Test that cancelling while sleeping surfaces a cancellation."""
        token = CancelToken()

        async def cancelling_sleep(seconds: float) -> None:
            token.cancel("bored")
            await asyncio.sleep(10)

        transport = ScriptedTransport(json_response(503))
        pipeline = build_pipeline(
            [RetryStage(no_jitter(), sleep=cancelling_sleep)], transport
        )

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context(cancel_token=token))

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_send_is_not_retried(self, sleep: RecordingSleep) -> None:
        """Test that a cancellation from the transport is final."""
        transport = ScriptedTransport(transport_error(ErrorKind.CANCELLED))
        pipeline = build_pipeline([RetryStage(no_jitter(), sleep=sleep)], transport)

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context())

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert transport.call_count == 1
        assert sleep.delays == []
