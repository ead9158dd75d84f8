"""Bounded, TTL-aware, LRU-evicting response store."""

import math
import re
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from remote_client.cache.config import CacheConfig
from remote_client.constants import LRU_EVICTION_FRACTION
from remote_client.models.request import (
    RequestDescriptor,
    ResponseEnvelope,
    body_fingerprint,
)


logger = structlog.get_logger()

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    """Stored response with its expiry and last access time (clock seconds)."""

    response: ResponseEnvelope
    expires_at: float
    last_accessed_at: float

    def is_expired(self, now: float) -> bool:
        """Check if the entry has expired at `now`."""
        return now >= self.expires_at


class CacheStore:
    """In-memory response cache owned by one client.

    Provides:
    - Keys derived from the request shape (normalized URL, plus method and
      body hash when non-GET requests are cached)
    - Per-endpoint TTL rules
    - Batch LRU eviction when full
    """

    def __init__(self, config: CacheConfig, clock: Clock = time.monotonic) -> None:
        """Initialize the store.

        Args:
            config: Cache configuration.
            clock: Monotonic clock returning seconds (injectable for tests).
        """
        self._config = config
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._ttl_rules = [
            (re.compile(pattern), ttl) for pattern, ttl in config.endpoint_ttls
        ]
        self._log = logger.bind(component="cache")

    @property
    def config(self) -> CacheConfig:
        """Cache configuration."""
        return self._config

    @property
    def size(self) -> int:
        """Number of stored entries, expired ones included."""
        return len(self._entries)

    def key_for(self, request: RequestDescriptor) -> str | None:
        """Derive the cache key for a request.

        Args:
            request: Request descriptor.

        Returns:
            Cache key, or None if the request is not cacheable.
        """
        method = request.method.upper()
        if self._config.cache_get_only:
            if method != "GET":
                return None
            return request.normalized_url
        key = f"{method} {request.normalized_url}"
        if request.body is not None:
            key = f"{key}#{body_fingerprint(request.body)}"
        return key

    def resolve_ttl(self, path: str) -> float:
        """TTL in seconds for a path: first matching rule, else the default."""
        for pattern, ttl in self._ttl_rules:
            if pattern.search(path):
                return ttl
        return self._config.default_ttl_seconds

    def get(self, key: str) -> CacheEntry | None:
        """Look up a live entry and mark it as recently used.

        Args:
            key: Cache key.

        Returns:
            The entry, or None if missing or expired.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            return None
        entry.last_accessed_at = now
        return entry

    def is_cached(self, key: str) -> bool:
        """Check for a live entry without touching it."""
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def put(
        self,
        key: str,
        response: ResponseEnvelope,
        ttl_seconds: float | None = None,
    ) -> None:
        """Store a copy of a response.

        Expired entries are dropped first; if the store is still full, the
        least recently used tenth of the capacity (at least one entry) goes.

        Args:
            key: Cache key.
            response: Response to store.
            ttl_seconds: TTL override; resolved from the request path if None.
        """
        if ttl_seconds is None:
            path = response.request.path if response.request is not None else key
            ttl_seconds = self.resolve_ttl(path)

        self._entries.pop(key, None)
        self.evict_expired()
        if len(self._entries) >= self._config.max_entries:
            batch = max(1, math.ceil(self._config.max_entries * LRU_EVICTION_FRACTION))
            self.evict_lru(batch)

        now = self._clock()
        self._entries[key] = CacheEntry(
            response=response.copy(),
            expires_at=now + ttl_seconds,
            last_accessed_at=now,
        )

    def evict_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def evict_lru(self, count: int) -> int:
        """Remove up to `count` least recently used entries.

        Returns:
            Number of entries removed.
        """
        if count <= 0:
            return 0
        oldest = sorted(self._entries.items(), key=lambda item: item[1].last_accessed_at)
        victims = [key for key, _ in oldest[:count]]
        for key in victims:
            del self._entries[key]
        if victims:
            self._log.debug("cache_evicted", count=len(victims), remaining=len(self._entries))
        return len(victims)

    def invalidate(self, key: str) -> bool:
        """Remove one entry.

        Returns:
            True if an entry was removed.
        """
        return self._entries.pop(key, None) is not None

    def invalidate_matching(self, pattern: str | re.Pattern[str]) -> int:
        """Remove every entry whose key matches a regex.

        Returns:
            Number of entries removed.
        """
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        victims = [key for key in self._entries if compiled.search(key)]
        for key in victims:
            del self._entries[key]
        return len(victims)

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()
