"""Retry policy: decides whether and when a failed request is re-sent."""

import random
from collections.abc import Callable
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from remote_client.constants import HTTP_STATUS_SERVER_ERROR_MIN
from remote_client.errors import TIMEOUT_KINDS, ErrorKind, RequestError


RetryPredicate = Callable[[RequestError, int], bool]


def _default_retryable_status_codes() -> frozenset[int]:
    return frozenset({500, 502, 503, 504})


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Uses exponential backoff: delay = initial_delay_ms * (backoff_multiplier ^ attempt),
    capped at max_delay_ms. With jitter enabled the delay is replaced by a
    uniformly random value in [0, delay).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=20)] = 3
    initial_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0, le=600000)] = 10000
    backoff_multiplier: Annotated[float, Field(ge=1.0, le=10.0)] = 2.0
    use_jitter: bool = True
    retryable_status_codes: frozenset[int] = Field(
        default_factory=_default_retryable_status_codes
    )
    retry_on_connection_error: bool = True
    retry_on_timeout: bool = True
    retry_on_server_error: bool = True
    should_retry_predicate: RetryPredicate | None = Field(
        default=None,
        description="Custom predicate; when set it replaces the built-in rules",
    )

    @classmethod
    def default(cls) -> "RetryPolicy":
        """3 retries, 1s initial delay, 10s cap."""
        return cls()

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """Never retry."""
        return cls(max_retries=0)

    @classmethod
    def aggressive(cls) -> "RetryPolicy":
        """5 retries starting at 500ms, 30s cap, rate limits included."""
        return cls(
            max_retries=5,
            initial_delay_ms=500,
            max_delay_ms=30000,
            retryable_status_codes=frozenset({429, 500, 502, 503, 504}),
        )

    @classmethod
    def conservative(cls) -> "RetryPolicy":
        """One slow retry, only for 503/504."""
        return cls(
            max_retries=1,
            initial_delay_ms=2000,
            max_delay_ms=5000,
            backoff_multiplier=1.5,
            retryable_status_codes=frozenset({503, 504}),
            retry_on_timeout=False,
            retry_on_server_error=False,
        )

    @property
    def is_enabled(self) -> bool:
        """Check if the policy allows any retry."""
        return self.max_retries > 0

    def should_retry(self, error: RequestError, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            error: The error that occurred.
            attempt: Retries already performed (0-indexed).

        Returns:
            True if the request should be retried.
        """
        if attempt >= self.max_retries:
            return False
        if error.kind is ErrorKind.CANCELLED:
            return False

        if self.should_retry_predicate is not None:
            return self.should_retry_predicate(error, attempt)

        if error.kind in TIMEOUT_KINDS:
            return self.retry_on_timeout
        if error.kind in (ErrorKind.CONNECTION_ERROR, ErrorKind.UNKNOWN):
            return self.retry_on_connection_error
        if error.kind is ErrorKind.BAD_RESPONSE:
            return self._is_retryable_status(error.status_code)
        # BAD_CERTIFICATE and PIPELINE
        return False

    def _is_retryable_status(self, status_code: int | None) -> bool:
        if status_code is None or status_code not in self.retryable_status_codes:
            return False
        return status_code < HTTP_STATUS_SERVER_ERROR_MIN or self.retry_on_server_error

    def base_delay_ms(self, attempt: int) -> int:
        """Exponential delay before jitter, capped at max_delay_ms.

        Args:
            attempt: Retries already performed (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        delay = round(self.initial_delay_ms * (self.backoff_multiplier**attempt))
        return min(delay, self.max_delay_ms)

    def delay_for(self, attempt: int) -> int:
        """Calculate delay before the next retry attempt.

        Args:
            attempt: Retries already performed (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        delay = self.base_delay_ms(attempt)
        if self.use_jitter and delay > 0:
            # Full jitter
            return int(random.random() * delay)  # noqa: S311
        return delay
