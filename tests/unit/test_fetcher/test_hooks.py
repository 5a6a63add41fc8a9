"""Unit tests for middleware and loading registries."""

from typing import Any

import pytest

from fetcher.errors import FetcherError, HookError
from fetcher.hooks import HookRegistry, LoadingBroadcaster


class TestHookRegistry:
    """Tests for HookRegistry."""

    def test_invocation_order_is_registration_order(self) -> None:
        registry = HookRegistry()
        calls: list[str] = []
        registry.register("before", lambda url, _: calls.append(f"first:{url}"))
        registry.register("before", lambda url, _: calls.append(f"second:{url}"))

        registry.dispatch_before("/a", object())

        assert calls == ["first:/a", "second:/a"]

    def test_before_and_after_are_separate(self) -> None:
        registry = HookRegistry()
        before: list[Any] = []
        after: list[Any] = []
        registry.register("before", lambda url, payload: before.append(payload))
        registry.register("after", lambda url, payload: after.append(payload))

        registry.dispatch_after("/a", {"ok": True})

        assert before == []
        assert after == [{"ok": True}]

    def test_unknown_hook_rejected(self) -> None:
        registry = HookRegistry()

        with pytest.raises(ValueError, match="Unknown hook"):
            registry.register("around", lambda url, payload: None)  # type: ignore[arg-type]

    def test_observers_snapshot(self) -> None:
        registry = HookRegistry()

        def hook(url: str, payload: Any) -> None:
            return None

        registry.register("after", hook)

        assert registry.observers("after") == (hook,)
        assert registry.observers("before") == ()

    def test_raising_hook_wrapped_in_hook_error(self) -> None:
        """Test that observer errors surface as HookError, not FetcherError."""
        registry = HookRegistry()

        def broken(url: str, payload: Any) -> None:
            raise KeyError("missing")

        registry.register("after", broken)

        with pytest.raises(HookError) as exc_info:
            registry.dispatch_after("/a", None)

        assert exc_info.value.hook == "after"
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert not isinstance(exc_info.value, FetcherError)

    def test_raising_hook_stops_later_hooks(self) -> None:
        registry = HookRegistry()
        calls: list[str] = []

        def broken(url: str, payload: Any) -> None:
            raise RuntimeError("bad")

        registry.register("before", broken)
        registry.register("before", lambda url, _: calls.append("late"))

        with pytest.raises(HookError):
            registry.dispatch_before("/a", None)

        assert calls == []


class TestLoadingBroadcaster:
    """Tests for LoadingBroadcaster."""

    def test_broadcast_in_order(self) -> None:
        broadcaster = LoadingBroadcaster()
        events: list[tuple[str, bool, str]] = []
        broadcaster.subscribe(lambda loading, url: events.append(("a", loading, url)))
        broadcaster.subscribe(lambda loading, url: events.append(("b", loading, url)))

        broadcaster.broadcast(True, "/x")
        broadcaster.broadcast(False, "/x")

        assert events == [
            ("a", True, "/x"),
            ("b", True, "/x"),
            ("a", False, "/x"),
            ("b", False, "/x"),
        ]
        assert len(broadcaster.subscribers) == 2

    def test_raising_subscriber(self) -> None:
        broadcaster = LoadingBroadcaster()

        def broken(loading: bool, url: str) -> None:
            raise RuntimeError("ui gone")

        broadcaster.subscribe(broken)

        with pytest.raises(HookError) as exc_info:
            broadcaster.broadcast(True, "/x")

        assert exc_info.value.hook == "loading"

    def test_raising_subscriber_does_not_stop_later_ones(self) -> None:
        broadcaster = LoadingBroadcaster()
        events: list[bool] = []

        def broken(loading: bool, url: str) -> None:
            raise RuntimeError("ui gone")

        def also_broken(loading: bool, url: str) -> None:
            raise KeyError("second")

        broadcaster.subscribe(broken)
        broadcaster.subscribe(lambda loading, url: events.append(loading))
        broadcaster.subscribe(also_broken)

        with pytest.raises(HookError, match="ui gone") as exc_info:
            broadcaster.broadcast(False, "/x")

        assert events == [False]
        assert isinstance(exc_info.value.__cause__, RuntimeError)
