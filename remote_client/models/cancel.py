"""Cooperative cancellation handles for in-flight requests."""

import asyncio


class CancelToken:
    """Signal that a request should stop.

    A token may be cancelled at any time before the request settles. The
    pipeline races every suspension point (transport send, retry sleep,
    dedup wait) against the token; a cancelled request resolves as a
    `Cancelled` failure and is never retried or cached.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        """Check if the token has been cancelled."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Reason passed to `cancel`, if any."""
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Cancel the token. Subsequent calls are ignored.

        Args:
            reason: Optional human-readable reason.
        """
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
