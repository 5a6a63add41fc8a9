"""Error types for the request pipeline."""

from enum import Enum

from fetcher.redact import redact_url_credentials


class ErrorKind(str, Enum):
    """Classification of request failures for logging and metrics.

    - TRANSPORT: Network or connection failure from the transport
    - TIMEOUT: Cancellation fired before the attempt completed
    - STATUS: Transport returned a non-success status code
    - PARSE: Body present but undecodable per its declared kind
    """

    TRANSPORT = "TRANSPORT"
    TIMEOUT = "TIMEOUT"
    STATUS = "STATUS"
    PARSE = "PARSE"


class FetcherError(Exception):
    """Base exception for request failures.

    Failures detected by the pipeline itself are FetcherErrors. The retry
    loop also retries any other exception a transport raises, and
    re-raises the last error unchanged.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, url: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            url: URL of the failed request, if known.
        """
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging.

        Credentials embedded in the URL are redacted.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "url": redact_url_credentials(self.url) if self.url else None,
        }


class TransportError(FetcherError):
    """Network or connection failure reported by the transport."""

    kind = ErrorKind.TRANSPORT


class FetchTimeoutError(FetcherError, TimeoutError):
    """The attempt was cancelled by its timer before it completed."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str,
        url: str | None = None,
        timeout_ms: float | None = None,
    ) -> None:
        super().__init__(message, url)
        self.timeout_ms = timeout_ms


class StatusError(FetcherError):
    """The transport returned a non-success status code.

    Attributes:
        status_code: HTTP status code of the response.
    """

    kind = ErrorKind.STATUS

    def __init__(self, status_code: int, url: str | None = None) -> None:
        super().__init__(f"Request failed with status {status_code}", url)
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | None]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


class ParseError(FetcherError):
    """Response body could not be decoded per its declared content type."""

    kind = ErrorKind.PARSE

    def __init__(
        self,
        message: str,
        url: str | None = None,
        content_type: str | None = None,
    ) -> None:
        super().__init__(message, url)
        self.content_type = content_type


class HookError(Exception):
    """A registered observer raised while being notified.

    Kept outside the FetcherError hierarchy so observer bugs are never
    mistaken for request failures. The underlying exception is chained as
    ``__cause__``.

    Attributes:
        hook: Hook point that failed ("before", "after" or "loading").
    """

    def __init__(self, hook: str, message: str) -> None:
        super().__init__(message)
        self.hook = hook


def error_kind(error: BaseException) -> ErrorKind:
    """Classify any attempt failure.

    Exceptions raised by a transport that does not translate its own
    failures count as TRANSPORT, except builtin timeouts.
    """
    if isinstance(error, FetcherError):
        return error.kind
    if isinstance(error, TimeoutError):
        return ErrorKind.TIMEOUT
    return ErrorKind.TRANSPORT


def error_fields(error: BaseException) -> dict[str, str | int | None]:
    """Log fields for any attempt failure."""
    if isinstance(error, FetcherError):
        return error.to_dict()
    return {
        "kind": error_kind(error).value,
        "message": str(error),
        "error_type": type(error).__name__,
    }
