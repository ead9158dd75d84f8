"""Leader/follower coordination for identical in-flight requests."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from remote_client.dedup.config import DeduplicationConfig
from remote_client.errors import RequestError
from remote_client.models.request import (
    RequestDescriptor,
    ResponseEnvelope,
    body_fingerprint,
)


logger = structlog.get_logger()

Clock = Callable[[], float]


@dataclass(frozen=True)
class Settlement:
    """Outcome shared with followers: a response or an error."""

    response: ResponseEnvelope | None = None
    error: RequestError | None = None


@dataclass
class PendingRequest:
    """One in-flight request that followers can join."""

    key: str
    created_at: float
    future: "asyncio.Future[Settlement]"
    followers: int = field(default=0)

    @property
    def settled(self) -> bool:
        """Check if the leader has settled this entry."""
        return self.future.done()


@dataclass(frozen=True)
class Ticket:
    """Result of `begin`: leadership flag plus the shared entry."""

    entry: PendingRequest
    is_leader: bool

    async def join(self) -> ResponseEnvelope:
        """Wait for the leader and return an independent copy of its response.

        Raises:
            RequestError: The leader's error.
        """
        settlement = await asyncio.shield(self.entry.future)
        if settlement.error is not None:
            raise settlement.error
        assert settlement.response is not None
        return settlement.response.copy()


class DeduplicationCoordinator:
    """Tracks in-flight requests by fingerprint.

    `begin` and `settle` never suspend, so check-then-insert is atomic with
    respect to other tasks on the loop.
    """

    def __init__(
        self, config: DeduplicationConfig, clock: Clock = time.monotonic
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Deduplication configuration.
            clock: Monotonic clock returning seconds (injectable for tests).
        """
        self._config = config
        self._clock = clock
        self._pending: dict[str, PendingRequest] = {}
        self._log = logger.bind(component="dedup")

    @property
    def config(self) -> DeduplicationConfig:
        """Deduplication configuration."""
        return self._config

    @property
    def pending_count(self) -> int:
        """Number of entries followers can still join."""
        return len(self._pending)

    def key_for(self, request: RequestDescriptor) -> str | None:
        """Fingerprint a request.

        Args:
            request: Request descriptor.

        Returns:
            Fingerprint, or None if the request must not be deduplicated.
        """
        method = request.method.upper()
        allowed = {"GET"} if self._config.deduplicate_get_only else self._config.methods
        if method not in allowed:
            return None
        if self._config.key_generator is not None:
            return self._config.key_generator(request)
        key = f"{method} {request.normalized_url}"
        if self._config.include_body and request.body is not None:
            key = f"{key}#{body_fingerprint(request.body)}"
        return key

    def begin(self, key: str) -> Ticket:
        """Join a live entry for `key` or become its leader.

        Args:
            key: Request fingerprint.

        Returns:
            Ticket; the leader must eventually call `settle`.
        """
        self._purge_expired()
        entry = self._pending.get(key)
        if entry is not None and not entry.settled:
            entry.followers += 1
            return Ticket(entry=entry, is_leader=False)

        entry = PendingRequest(
            key=key,
            created_at=self._clock(),
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[key] = entry
        return Ticket(entry=entry, is_leader=True)

    def settle(
        self,
        entry: PendingRequest,
        response: ResponseEnvelope | None = None,
        error: RequestError | None = None,
    ) -> bool:
        """Settle an entry with a response or an error.

        Args:
            entry: Entry returned by `begin` to the leader.
            response: Successful response.
            error: Error, when the leader failed.

        Returns:
            False if the entry was already settled.
        """
        if entry.settled:
            return False
        entry.future.set_result(Settlement(response=response, error=error))
        if self._pending.get(entry.key) is entry:
            del self._pending[entry.key]
        if entry.followers:
            self._log.debug(
                "dedup_settled",
                key=entry.key,
                followers=entry.followers,
                failed=error is not None,
            )
        return True

    def clear(self) -> None:
        """Forget every entry. Followers already waiting still get their result."""
        self._pending.clear()

    def _purge_expired(self) -> None:
        now = self._clock()
        window = self._config.window_seconds
        expired = [k for k, e in self._pending.items() if now - e.created_at > window]
        for key in expired:
            del self._pending[key]
