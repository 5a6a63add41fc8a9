"""Resilient request execution over a pluggable transport.

This package wraps a network call with:
- Header composition with a bearer credential
- Per-attempt timeouts via cancellation tokens
- Retry on any failure up to a total attempt budget
- Content-type based response decoding
- Middleware observers and loading-state events

A process-wide ``fetcher`` instance is provided together with module-level
shortcuts that delegate to it.
"""

from typing import Any

from fetcher.cancellation import (
    CancellationTimer,
    CancellationToken,
    arm,
    run_cancellable,
)
from fetcher.classifier import BodyKind, classify_content_type, decode_body
from fetcher.client import Fetcher
from fetcher.config import FetcherSettings, FetcherState, get_settings
from fetcher.errors import (
    ErrorKind,
    FetcherError,
    FetchTimeoutError,
    HookError,
    ParseError,
    StatusError,
    TransportError,
)
from fetcher.headers import compose_headers, encode_body
from fetcher.hooks import HookRegistry, LoadingBroadcaster
from fetcher.metrics import FetchMetrics
from fetcher.models import (
    AttemptFailure,
    AttemptOutcome,
    AttemptSuccess,
    CacheMode,
    HttpMethod,
    RequestConfig,
    RequestDescriptor,
)
from fetcher.retry import execute_with_retry
from fetcher.transport import (
    HttpxResponse,
    HttpxTransport,
    Transport,
    TransportResponse,
)


fetcher = Fetcher()


async def get(url: str, *args: Any, **kwargs: Any) -> Any:
    """GET through the default fetcher."""
    return await fetcher.get(url, *args, **kwargs)


async def post(url: str, *args: Any, **kwargs: Any) -> Any:
    """POST through the default fetcher."""
    return await fetcher.post(url, *args, **kwargs)


async def put(url: str, *args: Any, **kwargs: Any) -> Any:
    """PUT through the default fetcher."""
    return await fetcher.put(url, *args, **kwargs)


async def delete(url: str, *args: Any, **kwargs: Any) -> Any:
    """DELETE through the default fetcher."""
    return await fetcher.delete(url, *args, **kwargs)


set_base_url = fetcher.set_base_url
set_token = fetcher.set_token
add_middleware = fetcher.add_middleware
on_loading = fetcher.on_loading


__all__ = [
    # Client
    "Fetcher",
    "fetcher",
    "get",
    "post",
    "put",
    "delete",
    "set_base_url",
    "set_token",
    "add_middleware",
    "on_loading",
    # Config
    "FetcherSettings",
    "FetcherState",
    "get_settings",
    # Models
    "AttemptFailure",
    "AttemptOutcome",
    "AttemptSuccess",
    "CacheMode",
    "HttpMethod",
    "RequestConfig",
    "RequestDescriptor",
    # Errors
    "ErrorKind",
    "FetcherError",
    "FetchTimeoutError",
    "HookError",
    "ParseError",
    "StatusError",
    "TransportError",
    # Pipeline pieces
    "BodyKind",
    "CancellationTimer",
    "CancellationToken",
    "HookRegistry",
    "LoadingBroadcaster",
    "arm",
    "classify_content_type",
    "compose_headers",
    "decode_body",
    "encode_body",
    "execute_with_retry",
    "run_cancellable",
    # Transport
    "HttpxResponse",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
    # Metrics
    "FetchMetrics",
]
