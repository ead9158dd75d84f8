"""In-memory HTTP response cache."""

from remote_client.cache.config import CacheConfig
from remote_client.cache.stage import CacheStage
from remote_client.cache.store import CacheEntry, CacheStore


__all__ = [
    "CacheConfig",
    "CacheEntry",
    "CacheStage",
    "CacheStore",
]
