"""In-flight request deduplication."""

from remote_client.dedup.config import DeduplicationConfig, KeyGenerator
from remote_client.dedup.coordinator import (
    DeduplicationCoordinator,
    PendingRequest,
    Settlement,
    Ticket,
)
from remote_client.dedup.stage import DeduplicationStage


__all__ = [
    "DeduplicationConfig",
    "DeduplicationCoordinator",
    "DeduplicationStage",
    "KeyGenerator",
    "PendingRequest",
    "Settlement",
    "Ticket",
]
