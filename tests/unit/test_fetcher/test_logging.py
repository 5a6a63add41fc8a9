"""Unit tests for structured logging configuration."""

import io
import json
import logging

import pytest
import structlog

from fetcher.cancellation import CancellationToken
from fetcher.classifier import decode_body
from fetcher.config import FetcherSettings
from fetcher.observability import (
    bind_request_context,
    clear_request_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)
from fetcher.retry import execute_with_retry
from tests.helpers.transport import FakeResponse, json_response


class TestConfigureLogging:
    """Tests for configure_logging."""

    def teardown_method(self) -> None:
        clear_request_context()
        structlog.reset_defaults()

    def test_json_output_with_request_context(self) -> None:
        output = io.StringIO()
        configure_logging(level=logging.DEBUG, output=output)
        bind_request_context("req-1")

        get_logger().info("request_complete", attempts=2)

        record = json.loads(output.getvalue().strip().splitlines()[-1])
        assert record["event"] == "request_complete"
        assert record["attempts"] == 2
        assert record["request_id"] == "req-1"
        assert record["level"] == "info"

    def test_level_filtering(self) -> None:
        output = io.StringIO()
        configure_logging(level=logging.WARNING, output=output)

        get_logger().info("attempt_start")

        assert output.getvalue() == ""

    def test_console_renderer(self) -> None:
        output = io.StringIO()
        configure_logging(output=output, json_format=False)

        get_logger().warning("request_failed", kind="STATUS")

        assert "request_failed" in output.getvalue()

    def test_level_by_name(self) -> None:
        output = io.StringIO()
        configure_logging(level="warning", output=output)

        get_logger().info("attempt_start")
        get_logger().warning("attempt_failed")

        assert "attempt_start" not in output.getvalue()
        assert "attempt_failed" in output.getvalue()

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="chatty", output=io.StringIO())

    def test_initial_values_bound(self) -> None:
        output = io.StringIO()
        configure_logging(output=output)

        get_logger(component="fetcher").info("request_start")

        record = json.loads(output.getvalue().strip().splitlines()[-1])
        assert record["component"] == "fetcher"
        assert "ts" in record


class TestConfigureFromSettings:
    """Tests for configure_from_settings."""

    def teardown_method(self) -> None:
        structlog.reset_defaults()

    def test_settings_level_applied(self) -> None:
        output = io.StringIO()
        settings = FetcherSettings(log_level="ERROR", log_json=True)
        configure_from_settings(settings, output=output)

        get_logger().warning("attempt_failed")
        get_logger().error("request_failed")

        lines = output.getvalue().strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["event"] == "request_failed"


class TestAttemptEventLevels:
    """Non-debug attempt events stay below the configured threshold."""

    def teardown_method(self) -> None:
        structlog.reset_defaults()

    @pytest.mark.asyncio
    async def test_info_level_hides_attempt_events(self) -> None:
        output = io.StringIO()
        configure_logging(level="INFO", output=output)

        async def send(token: CancellationToken) -> FakeResponse:
            return json_response({"ok": 1})

        await execute_with_retry(
            send,
            decode_body,
            retries=1,
            timeout_ms=1000,
            url="https://api.test/x",
            log=get_logger(component="fetcher"),
        )

        assert "attempt_start" not in output.getvalue()
        assert "attempt_succeeded" not in output.getvalue()
