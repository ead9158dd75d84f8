"""Connectivity probes checked before a request is dispatched."""

import asyncio
import socket
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

import structlog


logger = structlog.get_logger()

Resolver = Callable[[str], Awaitable[Any]]

DEFAULT_PROBE_HOSTS = ("google.com", "cloudflare.com")


class ConnectivityProbe(Protocol):
    """Answers whether the network is reachable."""

    async def is_connected(self) -> bool:
        """Check connectivity."""
        ...


class OptimisticConnectivityProbe:
    """Probe for platforms without DNS access; always reports connected."""

    async def is_connected(self) -> bool:
        return True


class DnsConnectivityProbe:
    """Reports connected if any of a list of hosts resolves.

    The answer is cached for `cache_ttl_seconds`; each lookup is bounded by
    `lookup_timeout_seconds`.
    """

    def __init__(
        self,
        hosts: Sequence[str] = DEFAULT_PROBE_HOSTS,
        cache_ttl_seconds: float = 5.0,
        lookup_timeout_seconds: float = 3.0,
        resolver: Resolver | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the probe.

        Args:
            hosts: Hosts tried in order.
            cache_ttl_seconds: How long an answer is reused.
            lookup_timeout_seconds: Timeout for a single lookup.
            resolver: Async host resolver; the event loop's getaddrinfo by default.
            clock: Monotonic clock returning seconds.
        """
        self._hosts = tuple(hosts)
        self._cache_ttl = cache_ttl_seconds
        self._lookup_timeout = lookup_timeout_seconds
        self._resolver = resolver or _getaddrinfo
        self._clock = clock
        self._cached: bool | None = None
        self._checked_at = 0.0
        self._log = logger.bind(component="connectivity")

    async def is_connected(self) -> bool:
        """Check connectivity, reusing a recent answer."""
        now = self._clock()
        if self._cached is not None and now - self._checked_at < self._cache_ttl:
            return self._cached

        connected = False
        for host in self._hosts:
            if await self._resolves(host):
                connected = True
                break

        if not connected:
            self._log.warning("connectivity_lost", hosts=list(self._hosts))
        self._cached = connected
        self._checked_at = self._clock()
        return connected

    def clear_cache(self) -> None:
        """Forget the cached answer."""
        self._cached = None
        self._checked_at = 0.0

    async def _resolves(self, host: str) -> bool:
        try:
            result = await asyncio.wait_for(self._resolver(host), self._lookup_timeout)
        except (OSError, TimeoutError):
            return False
        return bool(result)


async def _getaddrinfo(host: str) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
