"""Per-client metrics for the request pipeline."""

from dataclasses import dataclass, field

from remote_client.result.failure import FailureKind


@dataclass
class PipelineMetrics:
    """Counters for one client instance.

    Tracks transport sends, cache hits, deduplicated joins, retries,
    token refreshes and failures. Never shared across clients.
    """

    requests_total: dict[int, int] = field(default_factory=dict)
    transport_sends_total: int = 0
    cache_hits_total: int = 0
    dedup_joins_total: int = 0
    retries_total: int = 0
    token_refreshes_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)
    duration_ms_total: float = 0.0
    request_count: int = 0

    def record_send(self) -> None:
        """Record a transport send (including retries and replays)."""
        self.transport_sends_total += 1

    def record_response(self, status_code: int) -> None:
        """Record a response status from the transport."""
        self.requests_total[status_code] = self.requests_total.get(status_code, 0) + 1

    def record_cache_hit(self) -> None:
        """Record a cache short-circuit."""
        self.cache_hits_total += 1

    def record_dedup_join(self) -> None:
        """Record a follower joining an in-flight request."""
        self.dedup_joins_total += 1

    def record_retry(self) -> None:
        """Record a retry attempt."""
        self.retries_total += 1

    def record_token_refresh(self) -> None:
        """Record a token refresh call."""
        self.token_refreshes_total += 1

    def record_failure(self, kind: FailureKind) -> None:
        """Record a failure delivered to a caller."""
        key = kind.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1

    def record_completion(self, duration_ms: float) -> None:
        """Record a completed call and its duration."""
        self.request_count += 1
        self.duration_ms_total += duration_ms

    @property
    def avg_duration_ms(self) -> float:
        """Average call duration in milliseconds."""
        if self.request_count == 0:
            return 0.0
        return self.duration_ms_total / self.request_count

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary."""
        return {
            "requests_total": dict(self.requests_total),
            "transport_sends_total": self.transport_sends_total,
            "cache_hits_total": self.cache_hits_total,
            "dedup_joins_total": self.dedup_joins_total,
            "retries_total": self.retries_total,
            "token_refreshes_total": self.token_refreshes_total,
            "failures_total": dict(self.failures_total),
            "duration_ms_total": self.duration_ms_total,
            "request_count": self.request_count,
        }
