"""Retry policy and retry stage."""

from remote_client.retry.policy import RetryPolicy, RetryPredicate
from remote_client.retry.stage import RetryStage


__all__ = [
    "RetryPolicy",
    "RetryPredicate",
    "RetryStage",
]
