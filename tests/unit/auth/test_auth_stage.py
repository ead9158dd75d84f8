"""Tests for the auth stage."""

import asyncio
from collections.abc import Callable

import pytest

from remote_client.auth import AuthStage, NoAuthTokenProvider, NoOpUnauthorizedHandler
from remote_client.errors import RequestError
from remote_client.models.request import RequestDescriptor, ResponseEnvelope
from tests.helpers.fakes import (
    RecordingTokenProvider,
    RecordingUnauthorizedHandler,
    ScriptedTransport,
    build_pipeline,
    json_response,
    make_context,
    make_request,
)


def token_aware(
    valid: str, ok_body: object = None
) -> Callable[[RequestDescriptor], ResponseEnvelope]:
    """Transport step returning 200 for the valid token and 401 otherwise."""

    def step(request: RequestDescriptor) -> ResponseEnvelope:
        if request.headers.get("Authorization") == f"Bearer {valid}":
            return json_response(200, ok_body)
        return json_response(401, {"message": "expired"})

    return step


class TestDecoration:
    """Tests for outbound decoration."""

    @pytest.mark.asyncio
    async def test_adds_bearer_and_locale(self) -> None:
        """Test header injection with a valid token."""
        transport = ScriptedTransport(json_response(200))
        stage = AuthStage(
            RecordingTokenProvider(token="abc"), NoOpUnauthorizedHandler(), locale="en"
        )
        pipeline = build_pipeline([stage], transport)

        await pipeline.execute(make_request(), make_context())

        sent = transport.requests[0].headers
        assert sent["Authorization"] == "Bearer abc"
        assert sent["locale"] == "en"

    @pytest.mark.asyncio
    async def test_no_token_is_not_an_error(self) -> None:
        """Test that requests go out unauthenticated without a token."""
        transport = ScriptedTransport(json_response(200))
        pipeline = build_pipeline(
            [AuthStage(NoAuthTokenProvider(), NoOpUnauthorizedHandler())], transport
        )

        await pipeline.execute(make_request(), make_context())

        assert "Authorization" not in transport.requests[0].headers

    @pytest.mark.asyncio
    async def test_replaces_existing_authorization_header(self) -> None:
        """Test that a caller-supplied header of any case is replaced."""
        transport = ScriptedTransport(json_response(200))
        pipeline = build_pipeline(
            [AuthStage(RecordingTokenProvider(token="abc"), NoOpUnauthorizedHandler())],
            transport,
        )

        await pipeline.execute(
            make_request(headers={"authorization": "Basic x"}), make_context()
        )

        assert dict(transport.requests[0].headers) == {"Authorization": "Bearer abc"}


class TestUnauthorized:
    """Tests for 401 handling."""

    @pytest.mark.asyncio
    async def test_refresh_and_replay_once(self) -> None:
        """Test that a 401 is refreshed and the request replayed with the new token."""
        provider = RecordingTokenProvider(token="old", refreshed="new")
        handler = RecordingUnauthorizedHandler()
        transport = ScriptedTransport(token_aware("new", {"ok": True}))
        pipeline = build_pipeline([AuthStage(provider, handler)], transport)
        ctx = make_context()

        response = await pipeline.execute(make_request("POST", "/login"), ctx)

        assert response.body == {"ok": True}
        assert [r.headers["Authorization"] for r in transport.requests] == [
            "Bearer old",
            "Bearer new",
        ]
        assert provider.refresh_calls == 1
        assert handler.calls == 0
        assert ctx.retried_after_refresh

    @pytest.mark.asyncio
    async def test_concurrent_401s_refresh_once(self) -> None:
        """Test that three concurrent 401s share one refresh and all replay."""
        provider = RecordingTokenProvider(token="old", refreshed="new", refresh_delay=0.01)
        transport = ScriptedTransport(token_aware("new", {"ok": True}))
        pipeline = build_pipeline(
            [AuthStage(provider, RecordingUnauthorizedHandler())], transport
        )

        responses = await asyncio.gather(
            *(pipeline.execute(make_request("POST", "/login"), make_context()) for _ in range(3))
        )

        assert provider.refresh_calls == 1
        assert all(r.status_code == 200 for r in responses)
        replays = [r for r in transport.requests if r.headers["Authorization"] == "Bearer new"]
        assert len(replays) == 3

    @pytest.mark.asyncio
    async def test_failed_refresh_propagates_for_everyone(self) -> None:
        """Test that a failed refresh surfaces the original 401 to all callers."""
        provider = RecordingTokenProvider(
            token="old", refresh_error=RuntimeError("revoked"), refresh_delay=0.01
        )
        handler = RecordingUnauthorizedHandler()
        transport = ScriptedTransport(json_response(401))
        pipeline = build_pipeline([AuthStage(provider, handler)], transport)

        results = await asyncio.gather(
            *(pipeline.execute(make_request(), make_context()) for _ in range(3)),
            return_exceptions=True,
        )

        assert all(isinstance(r, RequestError) and r.status_code == 401 for r in results)
        assert provider.refresh_calls == 1
        assert handler.calls == 3
        assert transport.call_count == 3

    @pytest.mark.asyncio
    async def test_no_infinite_refresh_loop(self) -> None:
        """Test that a replay that is still 401 is not refreshed again."""
        provider = RecordingTokenProvider(token="old", refreshed="also-bad")
        handler = RecordingUnauthorizedHandler()
        transport = ScriptedTransport(json_response(401))
        pipeline = build_pipeline([AuthStage(provider, handler)], transport)

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context())

        assert exc_info.value.status_code == 401
        assert provider.refresh_calls == 1
        assert transport.call_count == 2
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_marked_request_is_not_refreshed(self) -> None:
        """Test that an already-replayed context skips refreshing."""
        provider = RecordingTokenProvider()
        handler = RecordingUnauthorizedHandler()
        transport = ScriptedTransport(json_response(401))
        pipeline = build_pipeline([AuthStage(provider, handler)], transport)

        with pytest.raises(RequestError):
            await pipeline.execute(make_request(), make_context(retried_after_refresh=True))

        assert provider.refresh_calls == 0
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_other_errors_pass_through(self) -> None:
        """Test that non-401 errors are left alone."""
        provider = RecordingTokenProvider()
        transport = ScriptedTransport(json_response(403))
        pipeline = build_pipeline(
            [AuthStage(provider, RecordingUnauthorizedHandler())], transport
        )

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context())

        assert exc_info.value.status_code == 403
        assert provider.refresh_calls == 0

    @pytest.mark.asyncio
    async def test_handler_failure_does_not_mask_the_401(self) -> None:
        """Test that a raising unauthorized handler still surfaces the 401."""

        class ExplodingHandler:
            async def handle_unauthorized(self) -> None:
                raise RuntimeError("navigation failed")

        transport = ScriptedTransport(json_response(401))
        pipeline = build_pipeline(
            [AuthStage(RecordingTokenProvider(refreshed=None), ExplodingHandler())], transport
        )

        with pytest.raises(RequestError) as exc_info:
            await pipeline.execute(make_request(), make_context())

        assert exc_info.value.status_code == 401
