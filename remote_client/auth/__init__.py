"""Token injection and 401-triggered refresh."""

from remote_client.auth.contracts import (
    NoAuthTokenProvider,
    NoOpUnauthorizedHandler,
    TokenProvider,
    UnauthorizedHandler,
)
from remote_client.auth.refresh import TokenRefreshCoordinator
from remote_client.auth.stage import AuthStage, with_bearer


__all__ = [
    "AuthStage",
    "NoAuthTokenProvider",
    "NoOpUnauthorizedHandler",
    "TokenProvider",
    "TokenRefreshCoordinator",
    "UnauthorizedHandler",
    "with_bearer",
]
