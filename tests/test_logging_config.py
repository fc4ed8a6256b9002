"""Tests for logging configuration and formatters."""

import json
import logging
import sys

import pytest

from nearby_jobs.logging import ComponentLoggerAdapter, get_logger
from nearby_jobs.logging.config import (
    SERVICE_NAME,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from nearby_jobs.logging.context import clear_log_context, log_context


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def logger():
    """Create a test logger with no handlers."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


def make_record(logger, message="Test message", level=logging.INFO, extra=None):
    return logger.makeRecord("test", level, "test.py", 1, message, (), None, extra=extra)


class TestJSONFormatter:
    def test_mandatory_fields(self, logger):
        output = JSONFormatter().format(make_record(logger))
        log_obj = json.loads(output)

        assert log_obj["level"] == "INFO"
        assert log_obj["message"] == "Test message"
        assert log_obj["logger"] == "test"
        assert log_obj["timestamp"].endswith("Z")

    def test_extra_fields(self, logger):
        record = make_record(logger, extra={"event": "matching.completed", "match_count": 2, "nearest_km": None})

        log_obj = json.loads(JSONFormatter().format(record))

        assert log_obj["event"] == "matching.completed"
        assert log_obj["match_count"] == 2
        assert log_obj["nearest_km"] is None

    def test_non_json_values_are_stringified(self, logger):
        record = make_record(logger, extra={"path": object()})

        log_obj = json.loads(JSONFormatter().format(record))

        assert log_obj["path"].startswith("<object object")

    def test_exception_info(self, logger):
        try:
            raise ValueError("bad value")
        except ValueError:
            record = logger.makeRecord("test", logging.ERROR, "test.py", 1, "Failed", (), sys.exc_info())

        log_obj = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad value" in log_obj["exc_info"]

    def test_single_line(self, logger):
        output = JSONFormatter().format(make_record(logger, message="line one\nline two"))
        assert "\n" not in output


class TestKeyValueFormatter:
    def test_extras_are_sorted_and_appended(self, logger):
        formatter = KeyValueFormatter("%(levelname)s %(message)s")
        record = make_record(logger, extra={"zeta": 1, "alpha": "x"})

        assert formatter.format(record) == "INFO Test message alpha=x zeta=1"

    def test_value_formatting(self, logger):
        formatter = KeyValueFormatter("%(message)s")
        record = make_record(
            logger, extra={"flag": True, "missing": None, "text": "two words", "pair": "a=b"}
        )

        output = formatter.format(record)

        assert "flag=true" in output
        assert "missing=null" in output
        assert 'text="two words"' in output
        assert 'pair="a=b"' in output

    def test_service_labels_are_hidden(self, logger):
        formatter = KeyValueFormatter("%(message)s")
        record = make_record(logger, extra={"service": SERVICE_NAME, "environment": "local"})

        assert formatter.format(record) == "Test message"


class TestContextualFilter:
    def test_adds_service_and_environment(self, logger):
        record = make_record(logger)

        assert ContextualFilter(environment="production").filter(record) is True
        assert record.service == "nearby-jobs"
        assert record.environment == "production"

    def test_adds_context_fields(self, logger):
        record = make_record(logger)

        with log_context(request_id="abc123"):
            ContextualFilter().filter(record)

        assert record.request_id == "abc123"

    def test_explicit_extra_wins_over_context(self, logger):
        record = make_record(logger, extra={"request_id": "explicit"})

        with log_context(request_id="from-context"):
            ContextualFilter().filter(record)

        assert record.request_id == "explicit"


class TestConfigureLogging:
    def test_sets_level_and_single_handler(self, restore_root_logger):
        configure_logging(level="warning", format_type="json")

        root = restore_root_logger
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_key_value_format(self, restore_root_logger):
        configure_logging(level="INFO", format_type="key-value")

        assert isinstance(restore_root_logger.handlers[0].formatter, KeyValueFormatter)

    def test_writes_to_stderr(self, restore_root_logger, capsys):
        configure_logging(level="INFO", format_type="json", environment="test")

        logging.getLogger("nearby_jobs.test").info("hello", extra={"event": "test.event"})

        captured = capsys.readouterr()
        assert captured.out == ""
        log_obj = json.loads(captured.err.strip().splitlines()[-1])
        assert log_obj["message"] == "hello"
        assert log_obj["environment"] == "test"
        assert log_obj["service"] == "nearby-jobs"

    def test_invalid_level(self, restore_root_logger):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="LOUD")

    def test_invalid_format(self, restore_root_logger):
        with pytest.raises(ValueError, match="Invalid log format"):
            configure_logging(format_type="xml")


class TestGetLogger:
    def test_plain_logger(self):
        assert isinstance(get_logger("nearby_jobs.test"), logging.Logger)

    def test_component_adapter(self, caplog):
        adapter = get_logger("nearby_jobs.test", component="matching")
        assert isinstance(adapter, ComponentLoggerAdapter)

        with caplog.at_level(logging.INFO, logger="nearby_jobs.test"):
            adapter.info("ranked", extra={"event": "matching.completed"})

        record = caplog.records[-1]
        assert record.component == "matching"
        assert record.event == "matching.completed"

    def test_call_extra_wins_over_component(self, caplog):
        adapter = get_logger("nearby_jobs.test", component="matching")

        with caplog.at_level(logging.INFO, logger="nearby_jobs.test"):
            adapter.info("override", extra={"component": "custom"})

        assert caplog.records[-1].component == "custom"
