"""Async HTTP client runtime with a request pipeline and typed results.

Every call returns `Either[Failure, BaseResponse]`; requests flow through
deduplication, caching, retry, transformation and auth stages before they
reach the transport.
"""

from remote_client.auth import (
    NoAuthTokenProvider,
    NoOpUnauthorizedHandler,
    TokenProvider,
    UnauthorizedHandler,
)
from remote_client.cache import CacheConfig
from remote_client.client import (
    DefaultResponseParser,
    DirectResponseParser,
    ErrorHandler,
    RemoteClient,
    RemoteClientBuilder,
    ResponseParser,
    create_client,
)
from remote_client.config import ClientSettings, NetworkConfig
from remote_client.connectivity import (
    ConnectivityProbe,
    DnsConnectivityProbe,
    OptimisticConnectivityProbe,
)
from remote_client.dedup import DeduplicationConfig
from remote_client.errors import ErrorKind, RequestError
from remote_client.models import (
    BaseResponse,
    CancelToken,
    FormData,
    FormFile,
    RequestOptions,
    RequestTimeoutConfig,
    ResponseEnvelope,
    ResponseType,
)
from remote_client.result import Either, Failure, FailureKind, Left, Right
from remote_client.retry import RetryPolicy
from remote_client.transform import TransformationHooks
from remote_client.transport import HttpxTransport, Transport


__version__ = "1.0.0"

__all__ = [
    "BaseResponse",
    "CacheConfig",
    "CancelToken",
    "ClientSettings",
    "ConnectivityProbe",
    "DeduplicationConfig",
    "DefaultResponseParser",
    "DirectResponseParser",
    "DnsConnectivityProbe",
    "Either",
    "ErrorHandler",
    "ErrorKind",
    "Failure",
    "FailureKind",
    "FormData",
    "FormFile",
    "HttpxTransport",
    "Left",
    "NetworkConfig",
    "NoAuthTokenProvider",
    "NoOpUnauthorizedHandler",
    "OptimisticConnectivityProbe",
    "RemoteClient",
    "RemoteClientBuilder",
    "RequestError",
    "RequestOptions",
    "RequestTimeoutConfig",
    "ResponseEnvelope",
    "ResponseParser",
    "ResponseType",
    "RetryPolicy",
    "Right",
    "TokenProvider",
    "Transport",
    "TransformationHooks",
    "UnauthorizedHandler",
    "create_client",
]
