"""
Tests for structured logging.

This module tests:
- JSON output with timestamp and level
- Operation name binding via operation_context
"""

import io
import json

import pytest

from bank_resilience.observability.logging import (
    configure_logging,
    get_logger,
    get_operation,
    operation_context,
    reset_logging,
)


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    configure_logging(level="DEBUG", stream=stream, force=True)
    yield stream
    reset_logging()
    configure_logging(force=True)


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestJsonOutput:
    def test_log_line_is_json(self, log_stream) -> None:
        get_logger("bank_resilience.test").info("circuit opened", reason="quota exhausted")

        [entry] = _lines(log_stream)
        assert entry["event"] == "circuit opened"
        assert entry["reason"] == "quota exhausted"
        assert entry["level"] == "info"
        assert entry["logger"] == "bank_resilience.test"
        assert "timestamp" in entry

    def test_level_filtering(self) -> None:
        stream = io.StringIO()
        configure_logging(level="WARNING", stream=stream, force=True)
        try:
            logger = get_logger("bank_resilience.test")
            logger.info("hidden")
            logger.warning("shown")
        finally:
            reset_logging()
            configure_logging(force=True)

        assert [entry["event"] for entry in _lines(stream)] == ["shown"]


class TestLoggerFactory:
    def test_first_logger_configures_output(self) -> None:
        stream = io.StringIO()
        reset_logging()
        try:
            logger = get_logger("bank_resilience.first", stream=stream)
            logger.info("configured on first use")
        finally:
            reset_logging()
            configure_logging(force=True)

        [entry] = _lines(stream)
        assert entry["logger"] == "bank_resilience.first"
        assert entry["event"] == "configured on first use"

    def test_module_level_loggers(self) -> None:
        from bank_resilience.resilience import circuit_breaker, emergency_mode, throttle

        for module in (circuit_breaker, emergency_mode, throttle):
            module.logger.debug("module logger usable")


class TestOperationContext:
    def test_operation_bound_inside_context(self, log_stream) -> None:
        logger = get_logger("bank_resilience.test")

        with operation_context("get-user-document"):
            assert get_operation() == "get-user-document"
            logger.info("inside")
        logger.info("outside")

        inside, outside = _lines(log_stream)
        assert inside["operation"] == "get-user-document"
        assert "operation" not in outside
        assert get_operation() is None

    def test_explicit_operation_wins(self, log_stream) -> None:
        with operation_context("outer"):
            get_logger("bank_resilience.test").warning("throttled", operation="update-balance")

        [entry] = _lines(log_stream)
        assert entry["operation"] == "update-balance"

    def test_nested_contexts_restore(self) -> None:
        with operation_context("outer"):
            with operation_context("inner"):
                assert get_operation() == "inner"
            assert get_operation() == "outer"
