"""Data models for the request pipeline."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from fetcher.constants import DEFAULT_RETRIES, DEFAULT_TIMEOUT_MS


if TYPE_CHECKING:
    from fetcher.cancellation import CancellationToken


class HttpMethod(str, Enum):
    """Supported HTTP methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class CacheMode(str, Enum):
    """Cache hint handed to the transport.

    Values follow the fetch ``RequestCache`` vocabulary. The pipeline never
    interprets them; the transport decides what each one means.
    """

    DEFAULT = "default"
    NO_STORE = "no-store"
    RELOAD = "reload"
    NO_CACHE = "no-cache"
    FORCE_CACHE = "force-cache"
    ONLY_IF_CACHED = "only-if-cached"


class RequestConfig(BaseModel):
    """Caller-supplied configuration for one logical request.

    ``retries`` is the total attempt budget including the first try, so
    the default of 1 means no retries at all.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: HttpMethod = HttpMethod.GET
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    cache_mode: CacheMode = CacheMode.DEFAULT
    debug: bool = False
    revalidate_after: Annotated[
        float | None,
        Field(ge=0, description="Revalidation hint in seconds (advisory only)"),
    ] = None
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    retries: Annotated[int, Field(ge=1, description="Total attempt budget")] = (
        DEFAULT_RETRIES
    )
    show_loading: bool = False


@dataclass(frozen=True)
class RequestDescriptor:
    """Outgoing request handed to the transport.

    Headers are exposed as a read-only mapping so observers cannot change
    them after composition. The body is encoded once and re-sent unchanged
    on every attempt; only the cancellation token differs per attempt.
    """

    method: HttpMethod
    url: str
    headers: Mapping[str, str]
    body: bytes | None = None
    cache_mode: CacheMode = CacheMode.DEFAULT
    cancellation: "CancellationToken | None" = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def with_cancellation(self, token: "CancellationToken") -> "RequestDescriptor":
        """Bind a fresh cancellation token for one attempt."""
        return replace(self, cancellation=token)


@dataclass(frozen=True)
class AttemptSuccess:
    """A decoded response from a successful attempt."""

    data: Any
    elapsed_ms: float
    attempt_number: int = 1


@dataclass(frozen=True)
class AttemptFailure:
    """A failed attempt, kept for bookkeeping until the loop ends."""

    error: Exception
    attempt_number: int
    elapsed_ms: float = 0.0


AttemptOutcome = AttemptSuccess | AttemptFailure
