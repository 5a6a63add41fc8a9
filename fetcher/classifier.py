"""Response classification and body decoding."""

import json
from enum import Enum
from typing import Any

from fetcher.constants import JSON_CONTENT_MARKER, TEXT_CONTENT_MARKER
from fetcher.errors import ParseError
from fetcher.headers import get_header
from fetcher.transport import TransportResponse


class BodyKind(str, Enum):
    """Decoding strategy selected for a response body."""

    JSON = "json"
    TEXT = "text"
    BINARY = "binary"


def classify_content_type(content_type: str | None) -> BodyKind:
    """Select a decoding strategy from a declared content type.

    Args:
        content_type: Value of the Content-Type header, if any.

    Returns:
        JSON for ``application/json``, TEXT for any ``text/`` subtype,
        BINARY for everything else including a missing header.
    """
    value = (content_type or "").lower()
    if JSON_CONTENT_MARKER in value:
        return BodyKind.JSON
    if TEXT_CONTENT_MARKER in value:
        return BodyKind.TEXT
    return BodyKind.BINARY


async def decode_body(response: TransportResponse, url: str | None = None) -> Any:
    """Decode a response body exactly once.

    Args:
        response: Successful transport response.
        url: Request URL for error reporting.

    Returns:
        Parsed JSON value, text, or raw bytes.

    Raises:
        ParseError: If a JSON body is malformed or text cannot be decoded.
    """
    content_type = get_header(response.headers, "content-type")
    kind = classify_content_type(content_type)

    try:
        if kind is BodyKind.JSON:
            return await response.json()
        if kind is BodyKind.TEXT:
            return await response.text()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        msg = f"Failed to decode {kind.value} body: {e}"
        raise ParseError(msg, url=url, content_type=content_type) from e

    return await response.read()
