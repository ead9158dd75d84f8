"""User-supplied body transformations."""

from remote_client.transform.hooks import (
    RequestTransform,
    ResponseTransform,
    TransformationHooks,
)
from remote_client.transform.stage import TransformationStage


__all__ = [
    "RequestTransform",
    "ResponseTransform",
    "TransformationHooks",
    "TransformationStage",
]
