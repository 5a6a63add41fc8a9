"""Retry loop driving the attempts of one logical request."""

import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from fetcher.cancellation import CancellationTimer, CancellationToken
from fetcher.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN
from fetcher.errors import FetchTimeoutError, StatusError, error_fields
from fetcher.metrics import FetchMetrics
from fetcher.models import AttemptFailure, AttemptSuccess
from fetcher.transport import TransportResponse


SendFn = Callable[[CancellationToken], Awaitable[TransportResponse]]
DecodeFn = Callable[[TransportResponse], Awaitable[Any]]


def is_success_status(status_code: int) -> bool:
    """Check if a status code counts as a successful response."""
    return HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX


def _elapsed_ms(start_ns: int) -> float:
    return round((time.perf_counter_ns() - start_ns) / 1_000_000, 2)


async def execute_with_retry(
    send: SendFn,
    decode: DecodeFn,
    *,
    retries: int,
    timeout_ms: float,
    url: str,
    log: structlog.stdlib.BoundLogger,
    debug: bool = False,
    body: Any = None,
    metrics: FetchMetrics | None = None,
) -> AttemptSuccess:
    """Run up to ``retries`` attempts until one decodes successfully.

    Each attempt gets its own cancellation timer, disposed as soon as the
    transport call settles. Any failure (transport errors of any type,
    timeouts, non-2xx statuses, decode errors) consumes one attempt and is
    retried immediately. Task cancellation is never retried.

    Args:
        send: Performs the transport call for the given token.
        decode: Decodes a successful response body.
        retries: Total attempt budget, at least 1.
        timeout_ms: Per-attempt timeout in milliseconds.
        url: Full request URL, for errors and logging.
        log: Bound logger.
        debug: Log attempts at INFO/WARNING level and include the body.
        body: Request body to include in debug logs.
        metrics: Metrics sink; defaults to the singleton.

    Returns:
        AttemptSuccess with the decoded data.

    Raises:
        ValueError: If ``retries`` is less than 1.
        Exception: The error of the last attempt once the budget is spent,
            unchanged.
    """
    if retries < 1:
        msg = f"retries must be at least 1, got {retries}"
        raise ValueError(msg)

    metrics = metrics or FetchMetrics.get_instance()
    failures: list[AttemptFailure] = []

    for attempt_number in range(1, retries + 1):
        metrics.record_attempt(attempt_number)
        start_ns = time.perf_counter_ns()

        if debug:
            log.info(
                "attempt_start",
                attempt=attempt_number,
                retries=retries,
                body=body,
            )
        else:
            log.debug("attempt_start", attempt=attempt_number, retries=retries)

        timer = CancellationTimer(timeout_ms)
        token = timer.arm()
        try:
            try:
                response = await send(token)
            finally:
                timer.dispose()

            if timer.fired:
                msg = f"Request timed out: {token.reason}"
                raise FetchTimeoutError(msg, url=url, timeout_ms=timeout_ms)

            metrics.record_status(response.status_code)
            if not is_success_status(response.status_code):
                raise StatusError(response.status_code, url=url)

            data = await decode(response)
        except Exception as e:
            failure = AttemptFailure(
                error=e,
                attempt_number=attempt_number,
                elapsed_ms=_elapsed_ms(start_ns),
            )
            failures.append(failure)
            (log.warning if debug else log.debug)(
                "attempt_failed",
                attempt=failure.attempt_number,
                elapsed_ms=failure.elapsed_ms,
                timer_fired=timer.fired,
                **error_fields(e),
            )
            continue

        success = AttemptSuccess(
            data=data,
            elapsed_ms=_elapsed_ms(start_ns),
            attempt_number=attempt_number,
        )
        if debug:
            log.info(
                "attempt_succeeded",
                attempt=attempt_number,
                elapsed_ms=success.elapsed_ms,
                data=data,
            )
        else:
            log.debug(
                "attempt_succeeded",
                attempt=attempt_number,
                elapsed_ms=success.elapsed_ms,
            )
        return success

    raise failures[-1].error
