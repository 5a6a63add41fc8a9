"""Observer registries for middleware hooks and loading state.

Both registries are append-only: observers run in registration order and
cannot be removed. Observers are plain synchronous callables. A raising
observer is reported as ``HookError`` so it is never confused with a
request failure.
"""

from collections.abc import Callable
from typing import Any, Literal

from fetcher.constants import HOOK_AFTER, HOOK_BEFORE
from fetcher.errors import HookError


HookName = Literal["before", "after"]
MiddlewareFn = Callable[[str, Any], None]
LoadingFn = Callable[[bool, str], None]


class HookRegistry:
    """Ordered "before" and "after" middleware observers.

    "before" observers receive ``(url, descriptor)`` once per logical
    request before the first attempt. "after" observers receive
    ``(url, data)`` once per successful request, after decoding.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[MiddlewareFn]] = {
            HOOK_BEFORE: [],
            HOOK_AFTER: [],
        }

    def register(self, hook: HookName, fn: MiddlewareFn) -> None:
        """Append an observer to a hook point.

        Raises:
            ValueError: If ``hook`` is not "before" or "after".
        """
        if hook not in self._hooks:
            msg = f"Unknown hook '{hook}'; expected 'before' or 'after'"
            raise ValueError(msg)
        self._hooks[hook].append(fn)

    def observers(self, hook: HookName) -> tuple[MiddlewareFn, ...]:
        """Registered observers for a hook point, in invocation order."""
        return tuple(self._hooks[hook])

    def dispatch_before(self, url: str, descriptor: Any) -> None:
        """Notify "before" observers."""
        self._dispatch(HOOK_BEFORE, url, descriptor)

    def dispatch_after(self, url: str, data: Any) -> None:
        """Notify "after" observers."""
        self._dispatch(HOOK_AFTER, url, data)

    def _dispatch(self, hook: str, url: str, payload: Any) -> None:
        for fn in tuple(self._hooks[hook]):
            try:
                fn(url, payload)
            except Exception as e:
                msg = f"'{hook}' middleware {_describe(fn)} failed: {e}"
                raise HookError(hook, msg) from e


class LoadingBroadcaster:
    """Ordered observers of ``(is_loading, url)`` events."""

    def __init__(self) -> None:
        self._subscribers: list[LoadingFn] = []

    def subscribe(self, fn: LoadingFn) -> None:
        """Append a loading-state observer."""
        self._subscribers.append(fn)

    @property
    def subscribers(self) -> tuple[LoadingFn, ...]:
        return tuple(self._subscribers)

    def broadcast(self, is_loading: bool, url: str) -> None:
        """Notify every subscriber in registration order.

        A raising subscriber does not stop the others from being notified.

        Raises:
            HookError: After all subscribers ran, for the first one that
                raised.
        """
        failure: HookError | None = None
        for fn in tuple(self._subscribers):
            try:
                fn(is_loading, url)
            except Exception as e:
                if failure is None:
                    msg = f"Loading observer {_describe(fn)} failed: {e}"
                    failure = HookError("loading", msg)
                    failure.__cause__ = e
        if failure is not None:
            raise failure


def _describe(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)
