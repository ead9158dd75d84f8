"""Client configuration models."""

from remote_client.config.network import NetworkConfig
from remote_client.config.settings import ClientSettings, get_settings


__all__ = [
    "ClientSettings",
    "NetworkConfig",
    "get_settings",
]
