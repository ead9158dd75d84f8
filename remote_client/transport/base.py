"""Transport contract consumed by the pipeline."""

from typing import Protocol

from remote_client.models.request import RequestDescriptor, ResponseEnvelope


class Transport(Protocol):
    """Black-box HTTP transport.

    Implementations own connection management, TLS, DNS and redirects.
    """

    async def send(self, request: RequestDescriptor) -> ResponseEnvelope:
        """Send a request.

        Implementations may return envelopes of any status; the dispatcher
        classifies non-2xx statuses.

        Args:
            request: Request to send.

        Returns:
            Response envelope.

        Raises:
            RequestError: Classified transport failure.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...
