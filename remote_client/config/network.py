"""Client-wide network configuration."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from remote_client.constants import CONTENT_TYPE_JSON


TimeoutSeconds = Annotated[float, Field(gt=0.0, le=3600.0)]


def _default_headers() -> dict[str, str]:
    return {"Content-Type": CONTENT_TYPE_JSON, "Accept": CONTENT_TYPE_JSON}


class NetworkConfig(BaseModel):
    """Configuration for the underlying transport.

    Central configuration for base URL, timeouts, default headers and the
    connection pool size handed to the transport.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: Annotated[str, Field(min_length=1)]
    connect_timeout_seconds: TimeoutSeconds = 60.0
    receive_timeout_seconds: TimeoutSeconds = 60.0
    send_timeout_seconds: TimeoutSeconds = 60.0
    default_headers: dict[str, str] = Field(default_factory=_default_headers)
    max_connections_per_host: Annotated[int, Field(ge=1, le=1000)] = 5
    follow_redirects: bool = True
    max_redirects: Annotated[int, Field(ge=0, le=50)] = 5

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url is an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            msg = f"base_url must start with http:// or https://, got {v!r}"
            raise ValueError(msg)
        return v

    def with_overrides(self, **changes: Any) -> "NetworkConfig":
        """Return a validated copy with the given fields replaced.

        Args:
            **changes: Field values to replace.

        Returns:
            New NetworkConfig.
        """
        data = self.model_dump()
        data.update(changes)
        return NetworkConfig(**data)
