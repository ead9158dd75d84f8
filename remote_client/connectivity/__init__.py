"""Connectivity probes."""

from remote_client.connectivity.probe import (
    DEFAULT_PROBE_HOSTS,
    ConnectivityProbe,
    DnsConnectivityProbe,
    OptimisticConnectivityProbe,
)


__all__ = [
    "DEFAULT_PROBE_HOSTS",
    "ConnectivityProbe",
    "DnsConnectivityProbe",
    "OptimisticConnectivityProbe",
]
