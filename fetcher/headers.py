"""Header and body composition for outgoing requests."""

import json
from collections.abc import Mapping
from typing import Any

from fetcher.constants import (
    AUTHORIZATION_HEADER,
    CONTENT_TYPE_HEADER,
    DEFAULT_CONTENT_TYPE,
)


DEFAULT_HEADERS: Mapping[str, str] = {CONTENT_TYPE_HEADER: DEFAULT_CONTENT_TYPE}


def _set_header(headers: dict[str, str], key: str, value: str) -> None:
    # Header names are case-insensitive: drop any other spelling first.
    for existing in [k for k in headers if k.lower() == key.lower()]:
        del headers[existing]
    headers[key] = value


def compose_headers(
    defaults: Mapping[str, str] | None,
    caller_headers: Mapping[str, str] | None,
    token: str | None,
) -> dict[str, str]:
    """Merge default headers, caller headers and the bearer credential.

    Caller headers override defaults with the same name (compared
    case-insensitively). A set token always produces
    ``Authorization: Bearer {token}``, replacing any caller value.

    Args:
        defaults: Default headers, usually ``DEFAULT_HEADERS``.
        caller_headers: Headers supplied for this request.
        token: Current bearer token, or None.

    Returns:
        New dictionary with the final headers.
    """
    headers: dict[str, str] = {}

    for key, value in (defaults or DEFAULT_HEADERS).items():
        _set_header(headers, key, value)

    if caller_headers:
        for key, value in caller_headers.items():
            _set_header(headers, key, value)

    if token:
        _set_header(headers, AUTHORIZATION_HEADER, f"Bearer {token}")

    return headers


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Look up a header value by case-insensitive name."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def encode_body(body: Any) -> bytes | None:
    """Encode a request body once so every attempt sends the same bytes.

    Args:
        body: None, raw bytes, a string, or any JSON-serializable value.

    Returns:
        Encoded payload, or None when there is no body.

    Raises:
        TypeError: If the value is not JSON-serializable.
    """
    if body is None:
        return None
    if isinstance(body, bytes | bytearray):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


def build_url(base_url: str, url: str) -> str:
    """Prepend the base URL verbatim; no slash normalization."""
    return base_url + url if base_url else url
