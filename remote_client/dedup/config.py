"""Request deduplication configuration."""

from collections.abc import Callable
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from remote_client.constants import DEDUP_SAFE_METHODS
from remote_client.models.request import RequestDescriptor


KeyGenerator = Callable[[RequestDescriptor], str | None]


class DeduplicationConfig(BaseModel):
    """Configuration for in-flight request deduplication.

    Only idempotent methods are shared: GET alone by default, `methods`
    when `deduplicate_get_only` is off.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    window_ms: Annotated[int, Field(ge=1, le=60000)] = 500
    deduplicate_get_only: bool = True
    methods: frozenset[str] = DEDUP_SAFE_METHODS
    include_body: bool = False
    key_generator: KeyGenerator | None = Field(
        default=None, description="Custom fingerprint; None skips deduplication"
    )

    @property
    def window_seconds(self) -> float:
        """Window in seconds."""
        return self.window_ms / 1000.0

    @classmethod
    def aggressive(cls) -> "DeduplicationConfig":
        """One second window over GET/HEAD/OPTIONS, body included in the key."""
        return cls(window_ms=1000, deduplicate_get_only=False, include_body=True)

    @classmethod
    def conservative(cls) -> "DeduplicationConfig":
        """200ms window, GET only."""
        return cls(window_ms=200)
