"""Request, response and option models."""

from remote_client.models.cancel import CancelToken
from remote_client.models.options import RequestOptions
from remote_client.models.request import (
    FormData,
    FormFile,
    ProgressCallback,
    RequestDescriptor,
    ResponseEnvelope,
    ResponseType,
    body_fingerprint,
)
from remote_client.models.response import BaseResponse
from remote_client.models.timeouts import RequestTimeoutConfig


__all__ = [
    "BaseResponse",
    "CancelToken",
    "FormData",
    "FormFile",
    "ProgressCallback",
    "RequestDescriptor",
    "RequestOptions",
    "RequestTimeoutConfig",
    "ResponseEnvelope",
    "ResponseType",
    "body_fingerprint",
]
