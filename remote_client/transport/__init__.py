"""Transport contract and the default httpx adapter."""

from remote_client.transport.base import Transport
from remote_client.transport.httpx_transport import HttpxTransport, classify_httpx_error


__all__ = [
    "HttpxTransport",
    "Transport",
    "classify_httpx_error",
]
