"""Tests for the deduplication stage."""

import asyncio

import pytest

from remote_client.dedup import DeduplicationConfig, DeduplicationCoordinator, DeduplicationStage
from remote_client.errors import ErrorKind, RequestError
from remote_client.models import CancelToken
from remote_client.pipeline import PipelineMetrics, RequestPipeline
from tests.helpers.fakes import (
    FakeClock,
    ScriptedTransport,
    build_pipeline,
    json_response,
    make_context,
    make_request,
)


def dedup_pipeline(
    transport: ScriptedTransport, clock: FakeClock
) -> tuple[DeduplicationCoordinator, PipelineMetrics, RequestPipeline]:
    """Pipeline with a single dedup stage."""
    coordinator = DeduplicationCoordinator(DeduplicationConfig(), clock=clock)
    metrics = PipelineMetrics()
    pipeline = build_pipeline([DeduplicationStage(coordinator, metrics)], transport, metrics)
    return coordinator, metrics, pipeline


class TestDeduplicationStage:
    """Tests for DeduplicationStage."""

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_send(self, clock: FakeClock) -> None:
        """Test that N identical concurrent GETs trigger one transport call."""
        transport = ScriptedTransport(json_response(200, {"items": [1]}))
        transport.gate = asyncio.Event()
        coordinator, metrics, pipeline = dedup_pipeline(transport, clock)

        calls = [
            asyncio.ensure_future(
                pipeline.execute(make_request(query={"x": 1}), make_context(request_id=str(i)))
            )
            for i in range(5)
        ]
        await asyncio.sleep(0)
        transport.gate.set()
        responses = await asyncio.gather(*calls)

        assert transport.call_count == 1
        assert all(r.body == {"items": [1]} for r in responses)
        assert len({id(r) for r in responses}) == 5
        assert metrics.dedup_joins_total == 4
        assert coordinator.pending_count == 0

    @pytest.mark.asyncio
    async def test_followers_get_their_own_request(self, clock: FakeClock) -> None:
        """Test that follower responses reference the follower's request."""
        transport = ScriptedTransport(json_response(200))
        transport.gate = asyncio.Event()
        _, _, pipeline = dedup_pipeline(transport, clock)
        leader_request = make_request()
        follower_request = make_request()

        leader = asyncio.ensure_future(pipeline.execute(leader_request, make_context()))
        await asyncio.sleep(0)
        follower = asyncio.ensure_future(pipeline.execute(follower_request, make_context()))
        await asyncio.sleep(0)
        transport.gate.set()

        assert (await follower).request is follower_request
        await leader

    @pytest.mark.asyncio
    async def test_followers_receive_leader_failure(self, clock: FakeClock) -> None:
        """Test that a leader's error reaches every follower."""
        transport = ScriptedTransport(json_response(500))
        transport.gate = asyncio.Event()
        _, _, pipeline = dedup_pipeline(transport, clock)

        calls = [
            asyncio.ensure_future(pipeline.execute(make_request(), make_context()))
            for _ in range(3)
        ]
        await asyncio.sleep(0)
        transport.gate.set()
        results = await asyncio.gather(*calls, return_exceptions=True)

        assert transport.call_count == 1
        assert all(isinstance(r, RequestError) and r.status_code == 500 for r in results)

    @pytest.mark.asyncio
    async def test_cancelled_leader_propagates_to_followers(self, clock: FakeClock) -> None:
        """Test that cancelling the leader cancels followers too."""
        transport = ScriptedTransport(json_response(200))
        transport.gate = asyncio.Event()
        coordinator, _, pipeline = dedup_pipeline(transport, clock)
        token = CancelToken()

        leader = asyncio.ensure_future(
            pipeline.execute(make_request(), make_context(cancel_token=token))
        )
        await asyncio.sleep(0)
        follower = asyncio.ensure_future(pipeline.execute(make_request(), make_context()))
        await asyncio.sleep(0)

        token.cancel("navigated away")
        results = await asyncio.gather(leader, follower, return_exceptions=True)

        assert all(isinstance(r, RequestError) for r in results)
        assert all(r.kind is ErrorKind.CANCELLED for r in results)  # type: ignore[union-attr]
        assert coordinator.pending_count == 0

    @pytest.mark.asyncio
    async def test_leader_task_cancellation_settles_followers(self, clock: FakeClock) -> None:
        """Test that cancelling the leader's task still settles followers."""
        transport = ScriptedTransport(json_response(200))
        transport.gate = asyncio.Event()
        coordinator, _, pipeline = dedup_pipeline(transport, clock)

        leader = asyncio.ensure_future(pipeline.execute(make_request(), make_context()))
        await asyncio.sleep(0)
        follower = asyncio.ensure_future(pipeline.execute(make_request(), make_context()))
        await asyncio.sleep(0)

        leader.cancel()
        with pytest.raises(asyncio.CancelledError):
            await leader
        with pytest.raises(RequestError) as exc_info:
            await follower

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert coordinator.pending_count == 0

    @pytest.mark.asyncio
    async def test_cancelled_follower_does_not_affect_leader(self, clock: FakeClock) -> None:
        """Test that a follower's own cancellation only ends that follower."""
        transport = ScriptedTransport(json_response(200, {"ok": True}))
        transport.gate = asyncio.Event()
        _, _, pipeline = dedup_pipeline(transport, clock)
        token = CancelToken()

        leader = asyncio.ensure_future(pipeline.execute(make_request(), make_context()))
        await asyncio.sleep(0)
        follower = asyncio.ensure_future(
            pipeline.execute(make_request(), make_context(cancel_token=token))
        )
        await asyncio.sleep(0)
        token.cancel()

        with pytest.raises(RequestError) as exc_info:
            await follower
        transport.gate.set()

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert (await leader).body == {"ok": True}

    @pytest.mark.asyncio
    async def test_skip_deduplication(self, clock: FakeClock) -> None:
        """Test the per-request opt-out."""
        transport = ScriptedTransport(json_response(200))
        transport.gate = asyncio.Event()
        _, _, pipeline = dedup_pipeline(transport, clock)

        calls = [
            asyncio.ensure_future(
                pipeline.execute(make_request(), make_context(skip_deduplication=True))
            )
            for _ in range(2)
        ]
        await asyncio.sleep(0)
        transport.gate.set()
        await asyncio.gather(*calls)

        assert transport.call_count == 2
