"""Per-request timeout overrides."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


TimeoutSeconds = Annotated[float, Field(gt=0.0, le=3600.0)]


class RequestTimeoutConfig(BaseModel):
    """Send/receive timeout overrides for a single request.

    Values left as None fall back to whatever the next layer down provides
    (another override, then the client-wide NetworkConfig).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    send_timeout_seconds: TimeoutSeconds | None = None
    receive_timeout_seconds: TimeoutSeconds | None = None

    @classmethod
    def from_milliseconds(
        cls,
        send_timeout_ms: int | None = None,
        receive_timeout_ms: int | None = None,
    ) -> "RequestTimeoutConfig":
        """Build a config from millisecond values."""
        return cls(
            send_timeout_seconds=(
                send_timeout_ms / 1000.0 if send_timeout_ms is not None else None
            ),
            receive_timeout_seconds=(
                receive_timeout_ms / 1000.0 if receive_timeout_ms is not None else None
            ),
        )

    @classmethod
    def quick(cls) -> "RequestTimeoutConfig":
        """Short timeouts for lightweight calls (5s/5s)."""
        return cls(send_timeout_seconds=5.0, receive_timeout_seconds=5.0)

    @classmethod
    def normal(cls) -> "RequestTimeoutConfig":
        """No overrides; use the client-wide timeouts."""
        return cls()

    @classmethod
    def extended(cls) -> "RequestTimeoutConfig":
        """Long timeouts for slow endpoints (120s/120s)."""
        return cls(send_timeout_seconds=120.0, receive_timeout_seconds=120.0)

    @classmethod
    def file_upload(cls) -> "RequestTimeoutConfig":
        """Long send timeout for uploads (300s send, 30s receive)."""
        return cls(send_timeout_seconds=300.0, receive_timeout_seconds=30.0)

    @classmethod
    def file_download(cls) -> "RequestTimeoutConfig":
        """Long receive timeout for downloads (30s send, 300s receive)."""
        return cls(send_timeout_seconds=30.0, receive_timeout_seconds=300.0)

    def merged_over(
        self, other: "RequestTimeoutConfig | None"
    ) -> "RequestTimeoutConfig":
        """Merge this config over another; values set here take precedence.

        Args:
            other: Lower-precedence config (may be None).

        Returns:
            Merged config.
        """
        if other is None:
            return self
        return RequestTimeoutConfig(
            send_timeout_seconds=(
                self.send_timeout_seconds
                if self.send_timeout_seconds is not None
                else other.send_timeout_seconds
            ),
            receive_timeout_seconds=(
                self.receive_timeout_seconds
                if self.receive_timeout_seconds is not None
                else other.receive_timeout_seconds
            ),
        )

    def with_floor(self, floor_seconds: float) -> "RequestTimeoutConfig":
        """Raise unset or shorter timeouts to at least `floor_seconds`."""
        return RequestTimeoutConfig(
            send_timeout_seconds=max(self.send_timeout_seconds or 0.0, floor_seconds),
            receive_timeout_seconds=max(
                self.receive_timeout_seconds or 0.0, floor_seconds
            ),
        )
