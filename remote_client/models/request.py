"""Request descriptors and response envelopes that flow through the pipeline."""

import copy
import hashlib
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from remote_client.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN
from remote_client.models.timeouts import RequestTimeoutConfig


ProgressCallback = Callable[[int, int], None]


class ResponseType(str, Enum):
    """How the transport should decode a response body.

    - JSON: decode JSON, falling back to text when the body is not JSON
    - TEXT: decode as text
    - BYTES: raw bytes
    - STREAM: stream the body to a destination file (downloads)
    """

    JSON = "json"
    TEXT = "text"
    BYTES = "bytes"
    STREAM = "stream"


@dataclass(frozen=True)
class FormFile:
    """A single file part of a multipart body."""

    field_name: str
    filename: str
    content: bytes | Path
    content_type: str = "application/octet-stream"

    def read(self) -> bytes:
        """Return the file content as bytes."""
        if isinstance(self.content, Path):
            return self.content.read_bytes()
        return self.content


@dataclass(frozen=True)
class FormData:
    """Multipart form body: plain fields plus file parts."""

    fields: Mapping[str, str] = field(default_factory=dict)
    files: tuple[FormFile, ...] = ()


@dataclass(frozen=True)
class RequestDescriptor:
    """Outbound request description.

    Created once per call. Stages never mutate a descriptor; they derive a new
    one with `with_headers`/`with_body` or `dataclasses.replace`.

    Attributes:
        method: Upper-case HTTP method.
        path: Endpoint path relative to the base URL, or an absolute URL.
        query: Query parameters (order is irrelevant).
        body: Opaque payload: mapping, list, scalar, bytes or FormData.
        headers: Request headers.
        timeout: Per-request timeout overrides.
        content_type: Forced content type, if any.
        response_type: Body decoding hint.
        download_path: Destination file when streaming a download.
        on_send_progress: Upload progress callback.
        on_receive_progress: Download progress callback.
    """

    method: str
    path: str
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: RequestTimeoutConfig | None = None
    content_type: str | None = None
    response_type: ResponseType = ResponseType.JSON
    download_path: Path | None = None
    on_send_progress: ProgressCallback | None = None
    on_receive_progress: ProgressCallback | None = None

    def with_headers(self, **headers: str) -> "RequestDescriptor":
        """Return a copy with the given headers added or replaced."""
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    def with_header(self, name: str, value: str) -> "RequestDescriptor":
        """Return a copy with a single header set.

        Unlike `with_headers`, accepts header names that are not identifiers.
        """
        merged = dict(self.headers)
        merged[name] = value
        return replace(self, headers=merged)

    def with_body(self, body: Any) -> "RequestDescriptor":
        """Return a copy with the body replaced."""
        return replace(self, body=body)

    @property
    def query_pairs(self) -> list[tuple[str, str]]:
        """Query as encoded key/value pairs, sorted by key.

        List and tuple values repeat their key, `None` values are dropped and
        booleans render as `true`/`false`. The transport sends exactly these
        pairs, so cache keys and reported URIs match the wire.
        """
        pairs: list[tuple[str, str]] = []
        for key in sorted(self.query, key=str):
            value = self.query[key]
            values = value if isinstance(value, list | tuple) else [value]
            pairs.extend((str(key), _query_value(v)) for v in values if v is not None)
        return pairs

    @property
    def normalized_url(self) -> str:
        """Path plus the query string with keys sorted."""
        pairs = self.query_pairs
        if not pairs:
            return self.path
        return f"{self.path}?{urlencode(pairs)}"


@dataclass(frozen=True)
class ResponseEnvelope:
    """Response produced by the transport.

    Immutable. Stages that change the body build a new envelope with
    `with_body`; shared envelopes are handed out through `copy`.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    request: RequestDescriptor | None = None
    reason_phrase: str = ""

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    def with_body(self, body: Any) -> "ResponseEnvelope":
        """Return a new envelope with the body replaced."""
        return replace(self, body=body)

    def copy(self) -> "ResponseEnvelope":
        """Return an independent deep copy of headers and body."""
        return replace(
            self,
            headers=dict(self.headers),
            body=copy.deepcopy(self.body),
        )


def body_fingerprint(body: Any) -> str:
    """Stable hash of a request body for cache and dedup keys.

    Args:
        body: Request body.

    Returns:
        Hex digest (first 16 characters of SHA-256).
    """
    if isinstance(body, bytes):
        raw = body
    elif isinstance(body, FormData):
        raw = json.dumps(
            {
                "fields": dict(body.fields),
                "files": [(f.field_name, f.filename) for f in body.files],
            },
            sort_keys=True,
        ).encode("utf-8")
    else:
        raw = json.dumps(body, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:16]


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
