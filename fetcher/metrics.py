"""Metrics collection for the request pipeline."""

from dataclasses import dataclass, field
from typing import ClassVar

from fetcher.errors import ErrorKind


@dataclass
class FetchMetrics:
    """Metrics for request pipeline operations.

    Singleton class that tracks logical requests, individual attempts,
    retries and final failures by kind.
    """

    requests_total: int = 0
    attempts_total: int = 0
    retry_total: int = 0
    successes_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)
    status_codes_total: dict[int, int] = field(default_factory=dict)
    duration_ms_total: float = 0.0

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(self) -> None:
        """Record the start of a logical request."""
        self.requests_total += 1

    def record_attempt(self, attempt_number: int) -> None:
        """Record one attempt; anything past the first counts as a retry.

        Args:
            attempt_number: 1-based attempt number.
        """
        self.attempts_total += 1
        if attempt_number > 1:
            self.retry_total += 1

    def record_status(self, status_code: int) -> None:
        """Record a status code returned by the transport."""
        self.status_codes_total[status_code] = (
            self.status_codes_total.get(status_code, 0) + 1
        )

    def record_success(self, duration_ms: float) -> None:
        """Record a request that resolved to a decoded body.

        Args:
            duration_ms: Total duration across all attempts.
        """
        self.successes_total += 1
        self.duration_ms_total += duration_ms

    def record_failure(self, kind: ErrorKind, duration_ms: float) -> None:
        """Record a request whose attempt budget was exhausted.

        Args:
            kind: Classification of the final error.
            duration_ms: Total duration across all attempts.
        """
        key = kind.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1
        self.duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "requests_total": self.requests_total,
            "attempts_total": self.attempts_total,
            "retry_total": self.retry_total,
            "successes_total": self.successes_total,
            "failures_total": dict(self.failures_total),
            "status_codes_total": dict(self.status_codes_total),
            "duration_ms_total": self.duration_ms_total,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Average duration of completed requests in milliseconds."""
        completed = self.successes_total + sum(self.failures_total.values())
        if completed == 0:
            return 0.0
        return self.duration_ms_total / completed
