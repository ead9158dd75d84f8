"""User-supplied request/response body transformations."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from remote_client.models.request import RequestDescriptor, ResponseEnvelope


RequestTransform = Callable[[str, Any, RequestDescriptor], Any | Awaitable[Any]]
ResponseTransform = Callable[[str, ResponseEnvelope], Any | Awaitable[Any]]


@dataclass(frozen=True)
class TransformationHooks:
    """Optional body mappers applied around every request.

    Attributes:
        transform_request: `(endpoint, body, request) -> new body`.
        transform_response: `(endpoint, response) -> new body`.

    Either hook may be a plain function or a coroutine function.
    """

    transform_request: RequestTransform | None = None
    transform_response: ResponseTransform | None = None

    @classmethod
    def request_only(cls, transform: RequestTransform) -> "TransformationHooks":
        """Hooks that only transform outbound bodies."""
        return cls(transform_request=transform)

    @classmethod
    def response_only(cls, transform: ResponseTransform) -> "TransformationHooks":
        """Hooks that only transform inbound bodies."""
        return cls(transform_response=transform)

    @property
    def is_empty(self) -> bool:
        """Check if no hook is configured."""
        return self.transform_request is None and self.transform_response is None
