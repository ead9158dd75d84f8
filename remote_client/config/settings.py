"""Environment settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client configuration read from `REMOTE_CLIENT_*` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REMOTE_CLIENT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str | None = None
    connect_timeout_seconds: float = Field(default=60.0, gt=0.0)
    receive_timeout_seconds: float = Field(default=60.0, gt=0.0)
    send_timeout_seconds: float = Field(default=60.0, gt=0.0)
    max_connections_per_host: int = Field(default=5, ge=1)
    locale: str | None = None
    enable_logging: bool = False
    log_level: str = "INFO"
    log_json: bool = True


def get_settings() -> ClientSettings:
    """Get a settings instance."""
    return ClientSettings()
