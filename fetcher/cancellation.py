"""Cancellation tokens and per-attempt timeout timers.

A timer arms a token that flips to cancelled once the timeout elapses.
Transports observe the token cooperatively (see ``run_cancellable``) and
turn it into a ``FetchTimeoutError``. Every timer must be disposed when its
attempt settles; a disposed timer never cancels its token.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TypeVar

from fetcher.errors import FetchTimeoutError


T = TypeVar("T")


class CancellationToken:
    """Signal that transitions once from active to cancelled.

    Attributes:
        timeout_ms: Timeout of the timer that owns this token, if any.
    """

    def __init__(self, timeout_ms: float | None = None) -> None:
        self.timeout_ms = timeout_ms
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """Whether the token has been cancelled."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Why the token was cancelled, if it was."""
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Cancel the token. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        await self._event.wait()


class CancellationTimer:
    """Timer that cancels its token after ``timeout_ms`` unless disposed.

    A zero or negative timeout cancels the token as soon as it is armed.
    """

    def __init__(self, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        self.token = CancellationToken(timeout_ms)
        self._handle: asyncio.TimerHandle | None = None
        self._armed = False
        self._disposed = False
        self._fired = False

    @property
    def disposed(self) -> bool:
        """Whether ``dispose`` has been called."""
        return self._disposed

    @property
    def fired(self) -> bool:
        """Whether the timer cancelled its token."""
        return self._fired

    def arm(self) -> CancellationToken:
        """Start the countdown on the running loop.

        Returns:
            The token this timer will cancel.

        Raises:
            RuntimeError: If the timer was already armed or disposed.
        """
        if self._armed or self._disposed:
            msg = "CancellationTimer can only be armed once"
            raise RuntimeError(msg)
        loop = asyncio.get_running_loop()
        self._armed = True
        if self.timeout_ms <= 0:
            self._fire()
            return self.token
        self._handle = loop.call_later(self.timeout_ms / 1000.0, self._fire)
        return self.token

    def dispose(self) -> None:
        """Stop the countdown. Safe to call more than once."""
        self._disposed = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        if self._disposed:
            return
        self._fired = True
        self._handle = None
        self.token.cancel(f"timed out after {self.timeout_ms} ms")


def arm(timeout_ms: float) -> tuple[CancellationToken, Callable[[], None]]:
    """Arm a new timer.

    Args:
        timeout_ms: Milliseconds before the token is cancelled.

    Returns:
        Tuple of (token, dispose).
    """
    timer = CancellationTimer(timeout_ms)
    token = timer.arm()
    return token, timer.dispose


async def run_cancellable(
    awaitable: Awaitable[T],
    token: CancellationToken | None,
    *,
    url: str | None = None,
    timeout_ms: float | None = None,
) -> T:
    """Await ``awaitable`` unless ``token`` is cancelled first.

    When the token wins, the pending work is cancelled and awaited so no
    task is left running in the background. A token that is already
    cancelled fails without starting the work.

    Args:
        awaitable: Work to run, usually the transport call.
        token: Token to observe; None runs the work unguarded.
        url: URL for the error message.
        timeout_ms: Timeout for the error message; defaults to the
            token's own timeout.

    Returns:
        Result of the awaitable.

    Raises:
        FetchTimeoutError: If the token was cancelled before completion.
    """
    if token is None:
        return await awaitable

    if timeout_ms is None:
        timeout_ms = token.timeout_ms

    if token.cancelled:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        msg = f"Request timed out: {token.reason}"
        raise FetchTimeoutError(msg, url=url, timeout_ms=timeout_ms)

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait(
            {work, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        work.cancel()
        waiter.cancel()
        raise

    if work in done:
        waiter.cancel()
        return work.result()

    work.cancel()
    await asyncio.gather(work, return_exceptions=True)
    msg = f"Request timed out: {token.reason}"
    raise FetchTimeoutError(msg, url=url, timeout_ms=timeout_ms)
