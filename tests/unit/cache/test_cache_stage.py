"""Tests for the cache stage."""

import pytest

from remote_client.cache import CacheConfig, CacheStage, CacheStore
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


def cached_pipeline(
    transport: ScriptedTransport, clock: FakeClock, **config: object
) -> tuple[CacheStore, PipelineMetrics, RequestPipeline]:
    """Pipeline with a single cache stage."""
    store = CacheStore(CacheConfig(**config), clock=clock)  # type: ignore[arg-type]
    metrics = PipelineMetrics()
    pipeline = build_pipeline([CacheStage(store, metrics)], transport, metrics)
    return store, metrics, pipeline


class TestCacheStage:
    """Tests for CacheStage."""

    @pytest.mark.asyncio
    async def test_second_get_within_ttl_is_served_from_cache(self, clock: FakeClock) -> None:
        """Test two GETs 1s apart with a 5s TTL hit the transport once."""
        transport = ScriptedTransport(json_response(200, {"data": [1]}))
        store, metrics, pipeline = cached_pipeline(transport, clock, default_ttl_seconds=5.0)

        first = await pipeline.execute(make_request(), make_context())
        clock.advance(1.0)
        second = await pipeline.execute(make_request(), make_context())

        assert transport.call_count == 1
        assert second.body == first.body
        assert metrics.cache_hits_total == 1
        assert store.size == 1

    @pytest.mark.asyncio
    async def test_cache_hit_hands_out_copies(self, clock: FakeClock) -> None:
        """Test that mutating a cached response does not affect the store."""
        transport = ScriptedTransport(json_response(200, {"items": [1]}))
        _, _, pipeline = cached_pipeline(transport, clock)

        await pipeline.execute(make_request(), make_context())
        hit = await pipeline.execute(make_request(), make_context())
        hit.body["items"].append(2)
        again = await pipeline.execute(make_request(), make_context())

        assert again.body == {"items": [1]}

    @pytest.mark.asyncio
    async def test_errors_are_not_cached(self, clock: FakeClock) -> None:
        """Test that non-2xx responses never populate the cache."""
        transport = ScriptedTransport(json_response(500), json_response(200))
        store, _, pipeline = cached_pipeline(transport, clock)

        with pytest.raises(RequestError):
            await pipeline.execute(make_request(), make_context())
        assert store.size == 0

        await pipeline.execute(make_request(), make_context())
        assert transport.call_count == 2

    @pytest.mark.asyncio
    async def test_cancelled_request_is_not_served_from_cache(self, clock: FakeClock) -> None:
        """Test that a live entry does not answer a cancelled call."""
        transport = ScriptedTransport(json_response(200, {"n": 1}))
        store, metrics, pipeline = cached_pipeline(transport, clock)
        await pipeline.execute(make_request(), make_context())
        token = CancelToken()
        token.cancel("left the screen")

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context(cancel_token=token))

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert "left the screen" in exc_info.value.message
        assert metrics.cache_hits_total == 0
        assert transport.call_count == 1
        assert store.size == 1

    @pytest.mark.asyncio
    async def test_skip_cache_bypasses_read_and_write(self, clock: FakeClock) -> None:
        """Test the per-request bypass flag."""
        transport = ScriptedTransport(json_response(200, {"n": 1}))
        store, _, pipeline = cached_pipeline(transport, clock)

        await pipeline.execute(make_request(), make_context(skip_cache=True))
        assert store.size == 0

        await pipeline.execute(make_request(), make_context())
        await pipeline.execute(make_request(), make_context(skip_cache=True))
        assert transport.call_count == 3

    @pytest.mark.asyncio
    async def test_post_is_not_cached_by_default(self, clock: FakeClock) -> None:
        """Test that GET-only mode ignores other methods."""
        transport = ScriptedTransport(json_response(200))
        store, _, pipeline = cached_pipeline(transport, clock)

        await pipeline.execute(make_request("POST"), make_context())
        await pipeline.execute(make_request("POST"), make_context())

        assert transport.call_count == 2
        assert store.size == 0

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self, clock: FakeClock) -> None:
        """Test that an expired entry is replaced by a fresh response."""
        transport = ScriptedTransport(json_response(200, {"v": 1}), json_response(200, {"v": 2}))
        _, _, pipeline = cached_pipeline(transport, clock, default_ttl_seconds=5.0)

        await pipeline.execute(make_request(), make_context())
        clock.advance(6.0)
        fresh = await pipeline.execute(make_request(), make_context())

        assert fresh.body == {"v": 2}
        assert transport.call_count == 2
