"""Fetcher client: verb methods over the request pipeline."""

import time
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import structlog

from fetcher.cancellation import CancellationToken
from fetcher.classifier import decode_body
from fetcher.config import FetcherSettings, FetcherState
from fetcher.constants import DEFAULT_RETRIES, DEFAULT_TIMEOUT_MS
from fetcher.errors import error_fields, error_kind
from fetcher.headers import build_url, compose_headers, encode_body
from fetcher.hooks import (
    HookName,
    HookRegistry,
    LoadingBroadcaster,
    LoadingFn,
    MiddlewareFn,
)
from fetcher.metrics import FetchMetrics
from fetcher.models import CacheMode, HttpMethod, RequestConfig, RequestDescriptor
from fetcher.observability import configure_from_settings
from fetcher.redact import redact_headers, redact_url_credentials
from fetcher.retry import execute_with_retry
from fetcher.transport import HttpxTransport, Transport, TransportResponse


logger = structlog.get_logger()


class Fetcher:
    """Resilient request executor.

    Provides ``get``/``post``/``put``/``delete`` with:
    - Base URL prefixing and bearer credential injection
    - Per-attempt timeout via cancellation tokens
    - Retry on any failure up to a total attempt budget, no backoff
    - Content-type based body decoding
    - "before"/"after" middleware observers and loading-state events
    """

    def __init__(
        self,
        transport: Transport | None = None,
        state: FetcherState | None = None,
        *,
        default_timeout_ms: float = DEFAULT_TIMEOUT_MS,
        default_retries: int = DEFAULT_RETRIES,
    ) -> None:
        """Initialize the fetcher.

        Args:
            transport: Network transport; defaults to HttpxTransport.
            state: Initial base URL and credential.
            default_timeout_ms: Timeout used when a verb call passes None.
            default_retries: Attempt budget used when a verb call passes None.
        """
        self._transport: Transport = transport or HttpxTransport()
        self._state = state or FetcherState()
        self._default_timeout_ms = default_timeout_ms
        self._default_retries = default_retries
        self._hooks = HookRegistry()
        self._loading = LoadingBroadcaster()
        self._metrics = FetchMetrics.get_instance()

    @classmethod
    def from_settings(
        cls,
        settings: FetcherSettings | None = None,
        transport: Transport | None = None,
        *,
        configure_logs: bool = True,
    ) -> "Fetcher":
        """Create a fetcher configured from the environment.

        Args:
            settings: Settings to use; loaded from the environment if None.
            transport: Network transport; defaults to HttpxTransport.
            configure_logs: Apply ``log_level``/``log_json`` to structlog.
                Without this (or a ``configure_logging`` call) structlog's
                defaults print DEBUG attempt events.

        Returns:
            Configured Fetcher.
        """
        settings = settings or FetcherSettings()
        if configure_logs:
            configure_from_settings(settings)
        return cls(
            transport=transport,
            state=settings.to_state(),
            default_timeout_ms=settings.timeout_ms,
            default_retries=settings.retries,
        )

    @property
    def state(self) -> FetcherState:
        """Current base URL and credential snapshot."""
        return self._state

    @property
    def hooks(self) -> HookRegistry:
        return self._hooks

    @property
    def loading(self) -> LoadingBroadcaster:
        return self._loading

    def set_base_url(self, url: str) -> None:
        """Set the prefix prepended to every request URL."""
        self._state = self._state.with_base_url(url)

    def set_token(self, token: str | None) -> None:
        """Set the bearer token sent with every request (None clears it)."""
        self._state = self._state.with_token(token)

    def add_middleware(self, hook: HookName, fn: MiddlewareFn) -> None:
        """Register a "before" or "after" observer."""
        self._hooks.register(hook, fn)

    def on_loading(self, fn: LoadingFn) -> None:
        """Register a loading-state observer."""
        self._loading.subscribe(fn)

    def compose(self, url: str, config: RequestConfig) -> RequestDescriptor:
        """Build the request descriptor from the current state snapshot.

        Args:
            url: URL relative to the base URL (or absolute if none is set).
            config: Request configuration.

        Returns:
            Descriptor without a cancellation token.
        """
        state = self._state
        return RequestDescriptor(
            method=config.method,
            url=build_url(state.base_url, url),
            headers=compose_headers(
                state.default_headers, config.headers, state.token
            ),
            body=encode_body(config.body),
            cache_mode=config.cache_mode,
        )

    async def request(self, url: str, config: RequestConfig | None = None) -> Any:
        """Run one logical request through the pipeline.

        Args:
            url: URL relative to the base URL.
            config: Request configuration; defaults to a plain GET.

        Returns:
            Decoded body: parsed JSON, text, or bytes.

        Raises:
            Exception: The last attempt's error once the budget is spent;
                a FetcherError unless the transport raised something else.
            HookError: If a middleware or loading observer raises.
        """
        config = config or RequestConfig()
        descriptor = self.compose(url, config)
        full_url = descriptor.url

        log = logger.bind(
            component="fetcher",
            method=descriptor.method.value,
            url=redact_url_credentials(full_url),
        )
        if config.debug:
            log.info(
                "request_start",
                headers=redact_headers(descriptor.headers),
                cache_mode=descriptor.cache_mode.value,
                timeout_ms=config.timeout_ms,
                retries=config.retries,
                revalidate_after=config.revalidate_after,
            )

        self._hooks.dispatch_before(full_url, descriptor)
        self._metrics.record_request()

        async def send(token: CancellationToken) -> TransportResponse:
            return await self._transport.send(descriptor.with_cancellation(token))

        async def decode(response: TransportResponse) -> Any:
            return await decode_body(response, url=full_url)

        start_ns = time.perf_counter_ns()
        if config.show_loading:
            self._loading.broadcast(True, full_url)
        try:
            try:
                outcome = await execute_with_retry(
                    send,
                    decode,
                    retries=config.retries,
                    timeout_ms=config.timeout_ms,
                    url=full_url,
                    log=log,
                    debug=config.debug,
                    body=config.body,
                    metrics=self._metrics,
                )
            except Exception as e:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                self._metrics.record_failure(error_kind(e), duration_ms)
                log.warning(
                    "request_failed",
                    attempts=config.retries,
                    duration_ms=round(duration_ms, 2),
                    **error_fields(e),
                )
                raise

            duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
            self._metrics.record_success(duration_ms)
            log.info(
                "request_complete",
                attempts=outcome.attempt_number,
                duration_ms=round(duration_ms, 2),
            )

            self._hooks.dispatch_after(full_url, outcome.data)
            return outcome.data
        finally:
            if config.show_loading:
                self._loading.broadcast(False, full_url)

    def _config(self, method: HttpMethod, **options: Any) -> RequestConfig:
        # None means "use the default", as with an omitted argument.
        values = {key: value for key, value in options.items() if value is not None}
        values.setdefault("timeout_ms", self._default_timeout_ms)
        values.setdefault("retries", self._default_retries)
        return RequestConfig(method=method, **values)

    async def get(
        self,
        url: str,
        cache_mode: CacheMode | str | None = None,
        debug: bool | None = None,
        revalidate_after: float | None = None,
        timeout_ms: float | None = None,
        retries: int | None = None,
        show_loading: bool | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a GET request; cache mode defaults to "default"."""
        config = self._config(
            HttpMethod.GET,
            cache_mode=cache_mode or CacheMode.DEFAULT,
            debug=debug,
            revalidate_after=revalidate_after,
            timeout_ms=timeout_ms,
            retries=retries,
            show_loading=show_loading,
            headers=dict(headers) if headers else None,
        )
        return await self.request(url, config)

    async def post(
        self,
        url: str,
        body: Any = None,
        debug: bool | None = None,
        timeout_ms: float | None = None,
        retries: int | None = None,
        show_loading: bool | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a POST request; never cached."""
        config = self._config(
            HttpMethod.POST,
            body=body,
            cache_mode=CacheMode.NO_STORE,
            debug=debug,
            timeout_ms=timeout_ms,
            retries=retries,
            show_loading=show_loading,
            headers=dict(headers) if headers else None,
        )
        return await self.request(url, config)

    async def put(
        self,
        url: str,
        body: Any = None,
        debug: bool | None = None,
        timeout_ms: float | None = None,
        retries: int | None = None,
        show_loading: bool | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a PUT request; never cached."""
        config = self._config(
            HttpMethod.PUT,
            body=body,
            cache_mode=CacheMode.NO_STORE,
            debug=debug,
            timeout_ms=timeout_ms,
            retries=retries,
            show_loading=show_loading,
            headers=dict(headers) if headers else None,
        )
        return await self.request(url, config)

    async def delete(
        self,
        url: str,
        debug: bool | None = None,
        timeout_ms: float | None = None,
        retries: int | None = None,
        show_loading: bool | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a DELETE request; never cached."""
        config = self._config(
            HttpMethod.DELETE,
            cache_mode=CacheMode.NO_STORE,
            debug=debug,
            timeout_ms=timeout_ms,
            retries=retries,
            show_loading=show_loading,
            headers=dict(headers) if headers else None,
        )
        return await self.request(url, config)

    async def aclose(self) -> None:
        """Close the transport if it supports closing."""
        aclose = getattr(self._transport, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
