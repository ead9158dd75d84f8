"""Response cache configuration."""

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


TtlSeconds = Annotated[float, Field(gt=0.0, le=7 * 24 * 3600.0)]


class CacheConfig(BaseModel):
    """Configuration for the in-memory response cache.

    `endpoint_ttls` is an ordered list of (regex, ttl seconds) rules; the first
    pattern that matches a request path wins, otherwise `default_ttl_seconds`
    applies.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_ttl_seconds: TtlSeconds = 300.0
    max_entries: Annotated[int, Field(ge=1, le=100000)] = 100
    cache_get_only: bool = True
    endpoint_ttls: list[tuple[str, TtlSeconds]] = Field(default_factory=list)

    @field_validator("endpoint_ttls")
    @classmethod
    def validate_patterns(
        cls, v: list[tuple[str, float]]
    ) -> list[tuple[str, float]]:
        """Validate that every endpoint pattern is a valid regex."""
        for pattern, _ in v:
            try:
                re.compile(pattern)
            except re.error as e:
                msg = f"Invalid regex pattern {pattern!r}: {e}"
                raise ValueError(msg) from e
        return v

    @classmethod
    def aggressive(cls) -> "CacheConfig":
        """One hour TTL, 200 entries."""
        return cls(default_ttl_seconds=3600.0, max_entries=200)

    @classmethod
    def minimal(cls) -> "CacheConfig":
        """30 second TTL, 50 entries."""
        return cls(default_ttl_seconds=30.0, max_entries=50)
