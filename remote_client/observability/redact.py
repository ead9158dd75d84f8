"""Masking of credentials before anything reaches a log line.

Covers header values, userinfo in URLs and well-known secret fields in JSON
bodies (login payloads, token responses).
"""

import re
from collections.abc import Mapping
from typing import Any


REDACTED_VALUE = "[REDACTED]"

# Compared lower-case
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
    }
)

SENSITIVE_BODY_KEYS = frozenset(
    {
        "password",
        "token",
        "access_token",
        "refresh_token",
        "id_token",
        "client_secret",
    }
)

_USERINFO = re.compile(r"^(?P<scheme>[a-z][a-z0-9+.-]*://)[^/?#@\s]+@", re.IGNORECASE)


def is_sensitive_header(name: str) -> bool:
    """Check if a header carries credentials."""
    return name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of `headers` with credential-bearing values masked.

    Args:
        headers: Request or response headers.

    Returns:
        New dict; the input is left untouched.
    """
    return {
        name: REDACTED_VALUE if is_sensitive_header(name) else value
        for name, value in headers.items()
    }


def redact_url_credentials(url: str) -> str:
    """Mask the userinfo part of an absolute URL.

    `https://bob:pw@host/x` becomes `https://[REDACTED]@host/x`. Relative
    paths pass through unchanged.
    """
    return _USERINFO.sub(rf"\g<scheme>{REDACTED_VALUE}@", url)


def redact_body(body: Any) -> Any:
    """Mask values of secret keys in a decoded JSON body, at any depth."""
    if isinstance(body, Mapping):
        return {
            key: REDACTED_VALUE
            if str(key).lower() in SENSITIVE_BODY_KEYS
            else redact_body(value)
            for key, value in body.items()
        }
    if isinstance(body, list | tuple):
        return [redact_body(item) for item in body]
    return body
