"""Per-call options accepted by the client facade."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from remote_client.models.cancel import CancelToken
from remote_client.models.request import ResponseType
from remote_client.models.timeouts import RequestTimeoutConfig


@dataclass(frozen=True)
class RequestOptions:
    """Options for a single call.

    Attributes:
        headers: Extra headers merged over the client defaults.
        timeout: Timeout overrides; take precedence over client-wide values.
        cancel_token: Handle used to cancel the call.
        response_type: Body decoding hint.
        skip_cache: Bypass the response cache for this call.
        skip_deduplication: Never share this call with concurrent identical calls.
    """

    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: RequestTimeoutConfig | None = None
    cancel_token: CancelToken | None = None
    response_type: ResponseType = ResponseType.JSON
    skip_cache: bool = False
    skip_deduplication: bool = False
