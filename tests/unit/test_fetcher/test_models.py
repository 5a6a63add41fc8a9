"""Unit tests for pipeline models and errors."""

import pytest
from pydantic import ValidationError

from fetcher.cancellation import CancellationToken
from fetcher.errors import (
    ErrorKind,
    FetcherError,
    FetchTimeoutError,
    HookError,
    ParseError,
    StatusError,
    TransportError,
)
from fetcher.models import (
    AttemptFailure,
    AttemptSuccess,
    CacheMode,
    HttpMethod,
    RequestConfig,
    RequestDescriptor,
)


class TestRequestConfig:
    """Tests for RequestConfig defaults and validation."""

    def test_defaults(self) -> None:
        config = RequestConfig()

        assert config.method is HttpMethod.GET
        assert config.headers == {}
        assert config.body is None
        assert config.cache_mode is CacheMode.DEFAULT
        assert config.debug is False
        assert config.revalidate_after is None
        assert config.timeout_ms == 8000
        assert config.retries == 1
        assert config.show_loading is False

    def test_string_enums_coerced(self) -> None:
        config = RequestConfig(method="POST", cache_mode="no-store")

        assert config.method is HttpMethod.POST
        assert config.cache_mode is CacheMode.NO_STORE

    @pytest.mark.parametrize("retries", [0, -1])
    def test_budget_below_one_rejected(self, retries: int) -> None:
        with pytest.raises(ValidationError):
            RequestConfig(retries=retries)

    def test_negative_timeout_allowed(self) -> None:
        assert RequestConfig(timeout_ms=-1).timeout_ms == -1

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestConfig(attempts=3)  # type: ignore[call-arg]

    def test_frozen(self) -> None:
        config = RequestConfig()

        with pytest.raises(ValidationError):
            config.retries = 5  # type: ignore[misc]


class TestRequestDescriptor:
    """Tests for RequestDescriptor."""

    def test_headers_read_only_copy(self) -> None:
        source = {"Content-Type": "application/json"}
        descriptor = RequestDescriptor(method=HttpMethod.GET, url="/x", headers=source)

        source["X-Late"] = "1"

        assert "X-Late" not in descriptor.headers
        with pytest.raises(TypeError):
            descriptor.headers["X-New"] = "1"  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_with_cancellation_keeps_request(self) -> None:
        descriptor = RequestDescriptor(
            method=HttpMethod.POST, url="/x", headers={"A": "1"}, body=b"{}"
        )
        token = CancellationToken()

        bound = descriptor.with_cancellation(token)

        assert bound.cancellation is token
        assert descriptor.cancellation is None
        assert bound == descriptor
        assert bound.body == b"{}"
        assert dict(bound.headers) == {"A": "1"}


class TestAttemptOutcome:
    """Tests for attempt bookkeeping records."""

    def test_success(self) -> None:
        outcome = AttemptSuccess(data={"a": 1}, elapsed_ms=3.5, attempt_number=2)

        assert outcome.data == {"a": 1}
        assert outcome.attempt_number == 2

    def test_failure(self) -> None:
        error = TransportError("down")
        outcome = AttemptFailure(error=error, attempt_number=1)

        assert outcome.error is error
        assert outcome.elapsed_ms == 0.0


class TestErrors:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (TransportError("x"), ErrorKind.TRANSPORT),
            (FetchTimeoutError("x", timeout_ms=10), ErrorKind.TIMEOUT),
            (StatusError(500), ErrorKind.STATUS),
            (ParseError("x", content_type="application/json"), ErrorKind.PARSE),
        ],
    )
    def test_kinds(self, error: FetcherError, kind: ErrorKind) -> None:
        assert isinstance(error, FetcherError)
        assert error.kind is kind
        assert error.to_dict()["kind"] == kind.value

    def test_timeout_is_builtin_timeout(self) -> None:
        error = FetchTimeoutError("slow", timeout_ms=100)

        assert isinstance(error, TimeoutError)
        assert error.timeout_ms == 100

    def test_status_error_message(self) -> None:
        error = StatusError(503, url="/x")

        assert error.status_code == 503
        assert str(error) == "Request failed with status 503"

    def test_hook_error_is_separate_channel(self) -> None:
        error = HookError("before", "hook failed")

        assert not isinstance(error, FetcherError)
        assert error.hook == "before"
