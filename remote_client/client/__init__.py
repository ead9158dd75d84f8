"""Client facade, parsers, error handler and factory."""

from remote_client.client.error_handler import (
    STATUS_FAILURE_KINDS,
    SUCCESS_STATUS_CODES,
    ErrorHandler,
    is_offline_error,
)
from remote_client.client.facade import ClientResult, RemoteClient
from remote_client.client.factory import RemoteClientBuilder, create_client
from remote_client.client.parser import (
    Decoder,
    DefaultResponseParser,
    DirectResponseParser,
    ResponseParser,
)


__all__ = [
    "STATUS_FAILURE_KINDS",
    "SUCCESS_STATUS_CODES",
    "ClientResult",
    "Decoder",
    "DefaultResponseParser",
    "DirectResponseParser",
    "ErrorHandler",
    "RemoteClient",
    "RemoteClientBuilder",
    "ResponseParser",
    "create_client",
    "is_offline_error",
]
