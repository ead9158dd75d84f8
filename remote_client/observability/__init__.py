"""Structured logging, redaction and the logging stage."""

from remote_client.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from remote_client.observability.redact import (
    REDACTED_VALUE,
    SENSITIVE_BODY_KEYS,
    SENSITIVE_HEADERS,
    is_sensitive_header,
    redact_body,
    redact_headers,
    redact_url_credentials,
)
from remote_client.observability.stage import LoggingStage


__all__ = [
    "REDACTED_VALUE",
    "SENSITIVE_BODY_KEYS",
    "SENSITIVE_HEADERS",
    "LoggingStage",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "is_sensitive_header",
    "redact_body",
    "redact_headers",
    "redact_url_credentials",
]
