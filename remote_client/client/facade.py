"""Public client: verb methods returning Either[Failure, BaseResponse]."""

import uuid
from collections.abc import Mapping
from pathlib import Path
from types import TracebackType
from typing import Any, TypeVar

import structlog

from remote_client.cache.store import CacheStore
from remote_client.client.error_handler import ErrorHandler
from remote_client.client.parser import (
    Decoder,
    DefaultResponseParser,
    DirectResponseParser,
    ResponseParser,
)
from remote_client.config.network import NetworkConfig
from remote_client.connectivity.probe import ConnectivityProbe
from remote_client.constants import CONTENT_TYPE_MULTIPART, MIN_TRANSFER_TIMEOUT_SECONDS
from remote_client.dedup.coordinator import DeduplicationCoordinator
from remote_client.errors import RequestError
from remote_client.models.options import RequestOptions
from remote_client.models.request import (
    FormData,
    ProgressCallback,
    RequestDescriptor,
    ResponseType,
)
from remote_client.models.response import BaseResponse
from remote_client.models.timeouts import RequestTimeoutConfig
from remote_client.observability.logging import bind_request_context, clear_request_context
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.metrics import PipelineMetrics
from remote_client.pipeline.pipeline import RequestPipeline
from remote_client.result.either import Either, Left
from remote_client.result.failure import Failure, FailureKind
from remote_client.transport.base import Transport


logger = structlog.get_logger()

T = TypeVar("T")

ClientResult = Either[Failure, BaseResponse[T]]

_DEFAULT_OPTIONS = RequestOptions()


class RemoteClient:
    """HTTP client facade.

    Every call builds a request descriptor, runs it through the pipeline and
    returns `Right(BaseResponse)` or `Left(Failure)`. No request failure is
    raised to the caller.
    """

    def __init__(
        self,
        pipeline: RequestPipeline,
        transport: Transport,
        network_config: NetworkConfig,
        error_handler: ErrorHandler | None = None,
        response_parser: ResponseParser | None = None,
        metrics: PipelineMetrics | None = None,
        cache: CacheStore | None = None,
        deduplication: DeduplicationCoordinator | None = None,
        connectivity_probe: ConnectivityProbe | None = None,
        enable_request_id: bool = True,
        owns_transport: bool = True,
    ) -> None:
        """Initialize the client. Prefer `create_client` or `RemoteClientBuilder`.

        Args:
            pipeline: Configured request pipeline.
            transport: Transport behind the pipeline.
            network_config: Client-wide network configuration.
            error_handler: Error to failure mapper.
            response_parser: Body parser.
            metrics: Metrics shared with the pipeline stages.
            cache: Cache store, when caching is enabled.
            deduplication: Dedup coordinator, when deduplication is enabled.
            connectivity_probe: Checked before each request, if given.
            enable_request_id: Attach a UUID4 correlation id to every call.
            owns_transport: Close the transport in `aclose`.
        """
        self._pipeline = pipeline
        self._transport = transport
        self._network_config = network_config
        self._error_handler = error_handler or ErrorHandler(network_config.base_url)
        self._parser: ResponseParser = response_parser or DefaultResponseParser()
        self._metrics = metrics or PipelineMetrics()
        self._cache = cache
        self._deduplication = deduplication
        self._probe = connectivity_probe
        self._enable_request_id = enable_request_id
        self._owns_transport = owns_transport
        self._log = logger.bind(component="client")

    @property
    def network_config(self) -> NetworkConfig:
        """Client-wide network configuration."""
        return self._network_config

    @property
    def metrics(self) -> PipelineMetrics:
        """Metrics for this client."""
        return self._metrics

    @property
    def cache(self) -> CacheStore | None:
        """Cache store, if caching is enabled."""
        return self._cache

    @property
    def deduplication(self) -> DeduplicationCoordinator | None:
        """Dedup coordinator, if deduplication is enabled."""
        return self._deduplication

    @property
    def pipeline(self) -> RequestPipeline:
        """Request pipeline."""
        return self._pipeline

    def clear_cache(self) -> None:
        """Drop every cached response."""
        if self._cache is not None:
            self._cache.clear()

    def clear_pending_requests(self) -> None:
        """Forget every in-flight dedup entry."""
        if self._deduplication is not None:
            self._deduplication.clear()

    async def get(
        self,
        endpoint: str,
        query: Mapping[str, Any] | None = None,
        decode: Decoder[T] | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[T]:
        """Send a GET request.

        Args:
            endpoint: Path relative to the base URL, or an absolute URL.
            query: Query parameters.
            decode: Payload decoder.
            options: Per-call options.

        Returns:
            Right with the parsed response, or Left with a failure.
        """
        request = self._build("GET", endpoint, options, query=query)
        return await self._execute(request, options, decode)

    async def post(
        self,
        endpoint: str,
        data: Any = None,
        decode: Decoder[T] | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[T]:
        """Send a POST request with a JSON (or raw) body."""
        request = self._build("POST", endpoint, options, body=data)
        return await self._execute(request, options, decode)

    async def put(
        self,
        endpoint: str,
        data: Any = None,
        decode: Decoder[T] | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[T]:
        """Send a PUT request."""
        request = self._build("PUT", endpoint, options, body=data)
        return await self._execute(request, options, decode)

    async def patch(
        self,
        endpoint: str,
        data: Any = None,
        decode: Decoder[T] | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[T]:
        """Send a PATCH request."""
        request = self._build("PATCH", endpoint, options, body=data)
        return await self._execute(request, options, decode)

    async def delete(
        self,
        endpoint: str,
        options: RequestOptions | None = None,
    ) -> ClientResult[None]:
        """Send a DELETE request. The payload, if any, is not decoded."""
        request = self._build("DELETE", endpoint, options)
        return await self._execute(request, options, None)

    async def multipart_post(
        self,
        endpoint: str,
        form: FormData,
        on_send_progress: ProgressCallback | None = None,
        decode: Decoder[T] | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[T]:
        """Upload a multipart form with POST.

        Timeouts are raised to at least 60 seconds and the content type is
        always multipart/form-data.
        """
        request = self._build_multipart("POST", endpoint, form, on_send_progress, options)
        return await self._execute(request, options, decode)

    async def multipart_patch(
        self,
        endpoint: str,
        form: FormData,
        on_send_progress: ProgressCallback | None = None,
        decode: Decoder[T] | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[T]:
        """Upload a multipart form with PATCH."""
        request = self._build_multipart("PATCH", endpoint, form, on_send_progress, options)
        return await self._execute(request, options, decode)

    async def download(
        self,
        url: str,
        destination: str | Path,
        on_receive_progress: ProgressCallback | None = None,
        options: RequestOptions | None = None,
    ) -> ClientResult[None]:
        """Stream a response body to a file.

        Downloads are never cached or deduplicated.

        Args:
            url: Path relative to the base URL, or an absolute URL.
            destination: File to write.
            on_receive_progress: Called with (received, total); total is -1
                when the server sends no Content-Length.
            options: Per-call options.

        Returns:
            Right with an empty response, or Left with a failure.
        """
        opts = options or _DEFAULT_OPTIONS
        timeout = (opts.timeout or RequestTimeoutConfig()).with_floor(
            MIN_TRANSFER_TIMEOUT_SECONDS
        )
        request = RequestDescriptor(
            method="GET",
            path=url,
            headers=dict(opts.headers),
            timeout=timeout,
            response_type=ResponseType.STREAM,
            download_path=Path(destination),
            on_receive_progress=on_receive_progress,
        )
        return await self._execute(
            request,
            opts,
            None,
            parser=DirectResponseParser(),
            force_bypass=True,
        )

    async def aclose(self) -> None:
        """Close the transport if this client owns it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _build(
        self,
        method: str,
        endpoint: str,
        options: RequestOptions | None,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> RequestDescriptor:
        opts = options or _DEFAULT_OPTIONS
        return RequestDescriptor(
            method=method,
            path=endpoint,
            query=dict(query or {}),
            body=body,
            headers=dict(opts.headers),
            timeout=opts.timeout,
            response_type=opts.response_type,
        )

    def _build_multipart(
        self,
        method: str,
        endpoint: str,
        form: FormData,
        on_send_progress: ProgressCallback | None,
        options: RequestOptions | None,
    ) -> RequestDescriptor:
        opts = options or _DEFAULT_OPTIONS
        timeout = (opts.timeout or RequestTimeoutConfig()).with_floor(
            MIN_TRANSFER_TIMEOUT_SECONDS
        )
        return RequestDescriptor(
            method=method,
            path=endpoint,
            body=form,
            headers=dict(opts.headers),
            timeout=timeout,
            content_type=CONTENT_TYPE_MULTIPART,
            response_type=opts.response_type,
            on_send_progress=on_send_progress,
        )

    async def _execute(
        self,
        request: RequestDescriptor,
        options: RequestOptions | None,
        decode: Decoder[T] | None,
        parser: ResponseParser | None = None,
        force_bypass: bool = False,
    ) -> ClientResult[T]:
        opts = options or _DEFAULT_OPTIONS
        request_id = str(uuid.uuid4()) if self._enable_request_id else ""

        token = opts.cancel_token
        if token is not None and token.is_cancelled:
            failure = self._error_handler.handle_error(
                RequestError.cancelled(request, token.reason), request_id
            )
            self._metrics.record_failure(failure.kind)
            return Left(failure)

        if self._probe is not None and not await self._probe.is_connected():
            rid = f" [Request ID: {request_id}]" if request_id else ""
            failure = Failure(
                kind=FailureKind.NO_INTERNET,
                message=f"No internet connection{rid}",
                request_id=request_id or None,
                uri=self._error_handler.uri_for(request),
            )
            self._metrics.record_failure(failure.kind)
            return Left(failure)

        ctx = RequestContext(
            request_id=request_id,
            cancel_token=opts.cancel_token,
            skip_cache=opts.skip_cache or force_bypass,
            skip_deduplication=opts.skip_deduplication or force_bypass,
        )

        if request_id:
            bind_request_context(request_id)
        try:
            envelope = await self._pipeline.execute(request, ctx)
        except RequestError as exc:
            failure = self._error_handler.handle_error(exc, request_id)
            self._metrics.record_failure(failure.kind)
            self._log.info(
                "call_failed",
                failure_kind=failure.kind.value,
                status_code=failure.status_code,
                retry_count=ctx.retry_count,
            )
            return Left(failure)
        finally:
            self._metrics.record_completion(ctx.elapsed_ms)
            if request_id:
                clear_request_context()

        try:
            parsed: BaseResponse[T] = (parser or self._parser).parse(envelope, decode)
        except Exception as exc:  # noqa: BLE001
            failure = Failure(
                kind=FailureKind.UNEXPECTED,
                message=f"Failed to parse response: {exc}",
                response=envelope,
                request_id=request_id or None,
                uri=self._error_handler.uri_for(request),
                cause=exc,
            )
            self._metrics.record_failure(failure.kind)
            return Left(failure)

        result = self._error_handler.validate_response(
            parsed, request_id, request=request, envelope=envelope
        )
        if result.is_left:
            self._metrics.record_failure(result.left.kind)
        return result
