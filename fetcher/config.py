"""Configuration for the request pipeline.

``FetcherState`` holds the base URL and credential of one ``Fetcher``.
Setters replace the whole object, and each request reads a single snapshot
when it composes its descriptor. A request racing a setter sees either the
old or the new snapshot, never a mix of both.

``FetcherSettings`` loads instance defaults from the environment.
"""

import logging
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fetcher.constants import DEFAULT_RETRIES, DEFAULT_TIMEOUT_MS
from fetcher.headers import DEFAULT_HEADERS


class FetcherState(BaseModel):
    """Base URL, credential and default headers read by every request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = ""
    token: str | None = None
    default_headers: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_HEADERS)
    )

    def with_base_url(self, base_url: str) -> "FetcherState":
        """Return a copy with a new base URL."""
        return self.model_copy(update={"base_url": base_url})

    def with_token(self, token: str | None) -> "FetcherState":
        """Return a copy with a new bearer token (None clears it)."""
        return self.model_copy(update={"token": token})


class FetcherSettings(BaseSettings):
    """Environment configuration for a Fetcher instance.

    Variables use the ``FETCHER_`` prefix, e.g. ``FETCHER_BASE_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FETCHER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = ""
    token: str | None = None
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    retries: Annotated[int, Field(ge=1)] = DEFAULT_RETRIES
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for ``log_level``."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    def to_state(self) -> FetcherState:
        """Build the initial FetcherState from these settings."""
        return FetcherState(base_url=self.base_url, token=self.token or None)


def get_settings() -> FetcherSettings:
    """Get a settings instance."""
    return FetcherSettings()
