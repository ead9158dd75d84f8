"""Result model: Either plus the failure taxonomy."""

from remote_client.result.either import Either, Left, Right
from remote_client.result.failure import DEFAULT_MESSAGES, Failure, FailureKind


__all__ = [
    "DEFAULT_MESSAGES",
    "Either",
    "Failure",
    "FailureKind",
    "Left",
    "Right",
]
