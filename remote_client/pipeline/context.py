"""Per-request context record threaded through every stage."""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from remote_client.models.cancel import CancelToken
from remote_client.models.request import RequestDescriptor
from remote_client.pipeline.state_machine import AttemptStateMachine


if TYPE_CHECKING:
    from remote_client.dedup.coordinator import PendingRequest


@dataclass
class RequestContext:
    """Pipeline-internal state for one call.

    Replaces an untyped "extra" bag: every field a stage needs to hand to a
    later stage (or to its own response hook) lives here.

    Attributes:
        request_id: Correlation id, propagated through retries and failures.
        cancel_token: Caller's cancellation handle.
        skip_cache: Caller opted out of caching.
        skip_deduplication: Caller opted out of deduplication.
        retry_count: Number of retries performed so far.
        retry_origin: Request as seen by the retry stage, re-sent on retry.
        cache_key: Key to populate on a cacheable response.
        dedup_key: Fingerprint this call leads.
        dedup_entry: Pending entry this call leads.
        retried_after_refresh: Request was replayed after a token refresh.
        started_at: Monotonic start time.
        state: Attempt state machine.
        attributes: Free-form values for custom stages.
    """

    request_id: str = ""
    cancel_token: CancelToken | None = None
    skip_cache: bool = False
    skip_deduplication: bool = False
    retry_count: int = 0
    retry_origin: RequestDescriptor | None = None
    cache_key: str | None = None
    dedup_key: str | None = None
    dedup_entry: "PendingRequest | None" = None
    retried_after_refresh: bool = False
    started_at: float = field(default_factory=time.monotonic)
    state: AttemptStateMachine = field(default_factory=AttemptStateMachine)
    attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.state.request_id = self.request_id

    @property
    def is_cancelled(self) -> bool:
        """Check if the caller cancelled this request."""
        return self.cancel_token is not None and self.cancel_token.is_cancelled

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the context was created."""
        return (time.monotonic() - self.started_at) * 1000.0
