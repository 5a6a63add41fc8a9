"""Transport adapters that perform the actual network call.

The pipeline only depends on the ``Transport`` protocol. ``HttpxTransport``
is the default implementation on top of ``httpx.AsyncClient``.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from fetcher.cancellation import run_cancellable
from fetcher.constants import CACHE_CONTROL_HEADER
from fetcher.errors import FetchTimeoutError, TransportError
from fetcher.headers import get_header
from fetcher.models import CacheMode, RequestDescriptor
from fetcher.redact import redact_url_credentials


logger = structlog.get_logger()

# How each cache hint is expressed to an HTTP/1.1 server or proxy.
CACHE_CONTROL_BY_MODE: dict[CacheMode, str] = {
    CacheMode.NO_STORE: "no-store",
    CacheMode.NO_CACHE: "no-cache",
    CacheMode.RELOAD: "no-cache",
    CacheMode.FORCE_CACHE: "max-stale",
    CacheMode.ONLY_IF_CACHED: "only-if-cached",
}


@runtime_checkable
class TransportResponse(Protocol):
    """Response returned by a transport.

    The body is a single-consumption resource: callers read it through
    exactly one of ``json``, ``text`` or ``read``.
    """

    @property
    def status_code(self) -> int: ...

    @property
    def headers(self) -> Mapping[str, str]: ...

    async def json(self) -> Any: ...

    async def text(self) -> str: ...

    async def read(self) -> bytes: ...


@runtime_checkable
class Transport(Protocol):
    """Protocol for network transports.

    Implementations must observe ``descriptor.cancellation`` and fail the
    pending call with ``FetchTimeoutError`` once it is cancelled. Network
    failures are reported as ``TransportError``.
    """

    async def send(self, descriptor: RequestDescriptor) -> TransportResponse:
        """Perform one network call.

        Args:
            descriptor: Fully composed request.

        Returns:
            Response with status, headers and a readable body.

        Raises:
            TransportError: On network or connection failure.
            FetchTimeoutError: If the cancellation token fired first.
        """
        ...


class HttpxResponse:
    """TransportResponse backed by an ``httpx.Response``."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._consumed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        return self._response.headers

    @property
    def body_used(self) -> bool:
        """Whether the body has already been read."""
        return self._consumed

    def _consume(self) -> None:
        if self._consumed:
            msg = "Response body already consumed"
            raise RuntimeError(msg)
        self._consumed = True

    async def json(self) -> Any:
        self._consume()
        return self._response.json()

    async def text(self) -> str:
        self._consume()
        return self._response.text

    async def read(self) -> bytes:
        self._consume()
        return self._response.content


class HttpxTransport:
    """Transport using ``httpx.AsyncClient``.

    Timeouts are owned by the per-attempt cancellation timer, so the client
    created here has httpx timeouts disabled. A client passed in keeps its
    own settings; an ``httpx.TimeoutException`` from it is still reported
    as ``FetchTimeoutError``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        follow_redirects: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Existing client to use. Not closed by ``aclose``.
            transport: Low-level httpx transport for a lazily created client.
            follow_redirects: Follow redirects on the lazily created client.
        """
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self._follow_redirects = follow_redirects

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=None,
                follow_redirects=self._follow_redirects,
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def _build_headers(descriptor: RequestDescriptor) -> dict[str, str]:
        headers = dict(descriptor.headers)
        cache_control = CACHE_CONTROL_BY_MODE.get(descriptor.cache_mode)
        if cache_control and get_header(headers, CACHE_CONTROL_HEADER) is None:
            headers[CACHE_CONTROL_HEADER] = cache_control
        return headers

    async def send(self, descriptor: RequestDescriptor) -> HttpxResponse:
        client = self._get_client()
        pending = client.request(
            descriptor.method.value,
            descriptor.url,
            headers=self._build_headers(descriptor),
            content=descriptor.body,
        )

        token = descriptor.cancellation
        try:
            response = await run_cancellable(pending, token, url=descriptor.url)
        except httpx.TimeoutException as e:
            msg = f"Request timed out: {e}"
            raise FetchTimeoutError(
                msg,
                url=descriptor.url,
                timeout_ms=token.timeout_ms if token is not None else None,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            msg = f"Request failed: {e}"
            raise TransportError(msg, url=descriptor.url) from e

        logger.debug(
            "transport_response",
            component="transport",
            url=redact_url_credentials(descriptor.url),
            status_code=response.status_code,
            bytes=len(response.content),
        )
        return HttpxResponse(response)

    async def aclose(self) -> None:
        """Close the client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
