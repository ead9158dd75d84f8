"""Transport backed by httpx.AsyncClient."""

import ssl
from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog

from remote_client.config.network import NetworkConfig
from remote_client.constants import CONTENT_TYPE_MULTIPART, DEFAULT_CHUNK_SIZE
from remote_client.errors import ErrorKind, RequestError
from remote_client.models.request import (
    FormData,
    ProgressCallback,
    RequestDescriptor,
    ResponseEnvelope,
    ResponseType,
)


logger = structlog.get_logger()

UNKNOWN_TOTAL = -1


class _ProgressStream(httpx.AsyncByteStream):
    """Request body stream that reports upload progress."""

    def __init__(
        self,
        inner: httpx.AsyncByteStream,
        total: int,
        callback: ProgressCallback,
    ) -> None:
        self._inner = inner
        self._total = total
        self._callback = callback

    async def __aiter__(self) -> AsyncIterator[bytes]:
        sent = 0
        async for chunk in self._inner:
            sent += len(chunk)
            self._callback(sent, self._total)
            yield chunk

    async def aclose(self) -> None:
        await self._inner.aclose()


class HttpxTransport:
    """HTTP transport using a pooled httpx.AsyncClient.

    Provides:
    - Connection pooling sized from NetworkConfig
    - Per-request send/receive timeout overrides
    - JSON, form, multipart and raw bodies
    - Streaming downloads with progress callbacks
    - Classification of httpx failures into ErrorKind
    """

    def __init__(
        self,
        config: NetworkConfig,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Network configuration.
            client: Pre-built client; when given, the caller owns its lifecycle.
            transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(
                connect=config.connect_timeout_seconds,
                read=config.receive_timeout_seconds,
                write=config.send_timeout_seconds,
                pool=config.connect_timeout_seconds,
            ),
            limits=httpx.Limits(
                max_connections=config.max_connections_per_host,
                max_keepalive_connections=config.max_connections_per_host,
            ),
            follow_redirects=config.follow_redirects,
            max_redirects=config.max_redirects,
            transport=transport,
        )
        self._log = logger.bind(component="transport")

    async def send(self, request: RequestDescriptor) -> ResponseEnvelope:
        """Send a request through httpx.

        Args:
            request: Request descriptor.

        Returns:
            Response envelope (any status).

        Raises:
            RequestError: Classified transport failure.
        """
        try:
            http_request = self._build_request(request)
            if request.response_type is ResponseType.STREAM:
                return await self._download(request, http_request)
            response = await self._client.send(http_request)
            return ResponseEnvelope(
                status_code=response.status_code,
                headers=dict(response.headers),
                body=_decode_body(response, request.response_type),
                request=request,
                reason_phrase=response.reason_phrase,
            )
        except httpx.HTTPError as exc:
            raise classify_httpx_error(exc, request) from exc

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    def _build_request(self, request: RequestDescriptor) -> httpx.Request:
        """Translate a descriptor into an httpx.Request."""
        headers = self._build_headers(request)
        kwargs: dict[str, Any] = {}
        body = request.body
        if isinstance(body, FormData):
            kwargs["data"] = dict(body.fields)
            kwargs["files"] = [
                (f.field_name, (f.filename, f.read(), f.content_type))
                for f in body.files
            ]
        elif isinstance(body, bytes | str):
            kwargs["content"] = body
        elif body is not None:
            kwargs["json"] = body

        http_request = self._client.build_request(
            request.method,
            request.path,
            params=request.query_pairs or None,
            headers=headers,
            timeout=self._timeout_for(request),
            **kwargs,
        )

        if request.on_send_progress is not None and body is not None:
            total = int(http_request.headers.get("content-length", UNKNOWN_TOTAL))
            http_request.stream = _ProgressStream(
                http_request.stream,  # type: ignore[arg-type]
                total,
                request.on_send_progress,
            )
        return http_request

    def _build_headers(self, request: RequestDescriptor) -> dict[str, str]:
        """Merge default and request headers.

        Multipart bodies drop any Content-Type so httpx can add the boundary.
        """
        headers = dict(self._config.default_headers)
        headers.update(request.headers)
        if request.content_type is not None:
            headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
            headers["Content-Type"] = request.content_type
        if isinstance(request.body, FormData) or (
            request.content_type == CONTENT_TYPE_MULTIPART
        ):
            headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
        return headers

    def _timeout_for(self, request: RequestDescriptor) -> httpx.Timeout:
        """Per-request timeout; request overrides win over client defaults."""
        override = request.timeout
        write = self._config.send_timeout_seconds
        read = self._config.receive_timeout_seconds
        if override is not None:
            if override.send_timeout_seconds is not None:
                write = override.send_timeout_seconds
            if override.receive_timeout_seconds is not None:
                read = override.receive_timeout_seconds
        return httpx.Timeout(
            connect=self._config.connect_timeout_seconds,
            read=read,
            write=write,
            pool=self._config.connect_timeout_seconds,
        )

    async def _download(
        self, request: RequestDescriptor, http_request: httpx.Request
    ) -> ResponseEnvelope:
        """Stream a response body into `request.download_path`."""
        if request.download_path is None:
            msg = "download requires a destination path"
            raise RequestError(ErrorKind.PIPELINE, msg, request=request)

        response = await self._client.send(http_request, stream=True)
        try:
            if not response.is_success:
                await response.aread()
                return ResponseEnvelope(
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    body=_decode_body(response, ResponseType.JSON),
                    request=request,
                    reason_phrase=response.reason_phrase,
                )

            total = int(response.headers.get("content-length", UNKNOWN_TOTAL))
            received = 0
            destination = request.download_path
            destination.parent.mkdir(parents=True, exist_ok=True)
            try:
                with destination.open("wb") as fh:
                    async for chunk in response.aiter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
                        fh.write(chunk)
                        received += len(chunk)
                        if request.on_receive_progress is not None:
                            request.on_receive_progress(received, total)
            except BaseException:
                # Cancellation included; no partial file survives a failed read
                destination.unlink(missing_ok=True)
                self._log.debug("download_aborted", path=str(destination), bytes=received)
                raise

            self._log.debug(
                "download_complete",
                path=str(destination),
                bytes=received,
            )
            return ResponseEnvelope(
                status_code=response.status_code,
                headers=dict(response.headers),
                body=None,
                request=request,
                reason_phrase=response.reason_phrase,
            )
        finally:
            await response.aclose()


def _decode_body(response: httpx.Response, response_type: ResponseType) -> Any:
    """Decode a response body according to the requested type."""
    if response_type is ResponseType.BYTES:
        return response.content
    if response_type is ResponseType.TEXT:
        return response.text
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _is_certificate_error(exc: BaseException) -> bool:
    """Walk the exception chain looking for a TLS verification failure."""
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, ssl.SSLCertVerificationError):
            return True
        if "CERTIFICATE_VERIFY_FAILED" in str(current):
            return True
        current = current.__cause__ or current.__context__
    return False


def classify_httpx_error(exc: httpx.HTTPError, request: RequestDescriptor) -> RequestError:
    """Map an httpx exception onto a RequestError.

    Args:
        exc: Exception raised by httpx.
        request: Request that failed.

    Returns:
        Classified RequestError (caller chains the cause).
    """
    if isinstance(exc, httpx.ConnectTimeout | httpx.PoolTimeout):
        kind = ErrorKind.CONNECTION_TIMEOUT
        message = f"Connection timed out: {exc}"
    elif isinstance(exc, httpx.WriteTimeout):
        kind = ErrorKind.SEND_TIMEOUT
        message = f"Send timed out: {exc}"
    elif isinstance(exc, httpx.TimeoutException):
        kind = ErrorKind.RECEIVE_TIMEOUT
        message = f"Receive timed out: {exc}"
    elif _is_certificate_error(exc):
        kind = ErrorKind.BAD_CERTIFICATE
        message = f"Certificate verification failed: {exc}"
    elif isinstance(exc, httpx.NetworkError | httpx.ProtocolError | httpx.ProxyError):
        kind = ErrorKind.CONNECTION_ERROR
        message = f"Connection failed: {exc}"
    else:
        kind = ErrorKind.UNKNOWN
        message = f"Unexpected transport error: {exc}"
    return RequestError(kind, message, request=request)
