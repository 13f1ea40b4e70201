"""Unit tests for logging infrastructure."""

import json
import logging
import sys

import pytest

from mychef.utils.logger import JSONFormatter, RichTextFormatter, bind_context, get_logger, logger


def make_record(msg="Test message", level=logging.INFO, name="test_logger", exc_info=None, **extra):
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSONFormatter produces valid JSON output."""

    def test_json_formatter_outputs_valid_json(self):
        """Test that JSONFormatter produces valid JSON."""
        parsed = json.loads(JSONFormatter().format(make_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed
        assert "strategy" not in parsed

    def test_json_formatter_includes_context_extras(self):
        """Test that session_id and strategy extras are carried."""
        record = make_record(session_id="sess-1", strategy="no-cuisine")
        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["session_id"] == "sess-1"
        assert parsed["strategy"] == "no-cuisine"

    def test_json_formatter_includes_exception_traceback(self):
        """Test that JSONFormatter includes exception traceback when present."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record("Error occurred", level=logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))
        assert "ValueError" in parsed["exception"]


class TestRichTextFormatter:
    """Test RichTextFormatter produces colored text output."""

    def test_includes_level_name_and_message(self):
        """Test that the level, logger name and message are present."""
        output = RichTextFormatter().format(make_record("Custom message", name="my_logger"))

        assert "INFO" in output
        assert "my_logger" in output
        assert "Custom message" in output

    def test_includes_icons(self):
        """Test that each level gets its icon."""
        formatter = RichTextFormatter()
        for level in (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR):
            output = formatter.format(make_record(level=level))
            assert RichTextFormatter.ICONS[logging.getLevelName(level)] in output

    def test_includes_context_extras(self):
        """Test that context extras are appended in brackets."""
        output = RichTextFormatter().format(make_record(strategy="broad"))
        assert "[strategy=broad]" in output


class TestGetLogger:
    """Test logger creation and configuration from environment."""

    def test_json_log_type(self, monkeypatch):
        """Test LOG_TYPE=json selects the JSON formatter."""
        monkeypatch.setenv("LOG_TYPE", "json")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        test_logger = get_logger("mychef.test.json")

        assert isinstance(test_logger.handlers[0].formatter, JSONFormatter)
        assert test_logger.level == logging.DEBUG

    def test_text_log_type_default(self, monkeypatch):
        """Test the text formatter is the default."""
        monkeypatch.delenv("LOG_TYPE", raising=False)

        test_logger = get_logger("mychef.test.text")
        assert isinstance(test_logger.handlers[0].formatter, RichTextFormatter)

    def test_existing_logger_is_reused(self):
        """Test repeated calls do not stack handlers."""
        first = get_logger("mychef.test.reuse")
        second = get_logger("mychef.test.reuse")

        assert first is second
        assert len(second.handlers) == 1

    def test_module_logger(self):
        """Test the package logger is configured."""
        assert logger.name == "mychef"
        assert logger.handlers


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestBindContext:
    """Test session context binding."""

    def make_logger(self, name):
        test_logger = logging.getLogger(name)
        test_logger.handlers = []
        test_logger.propagate = False
        test_logger.setLevel(logging.DEBUG)
        handler = RecordingHandler()
        test_logger.addHandler(handler)
        return test_logger, handler

    def test_bound_context_is_stamped_on_records(self):
        """Test the bound session id appears on every record."""
        base, handler = self.make_logger("mychef.test.bind")
        log = bind_context(base, session_id="sess-9")

        log.info("first")
        log.warning("second")

        assert [r.session_id for r in handler.records] == ["sess-9", "sess-9"]

    def test_call_extras_merge_over_bound_context(self):
        """Test a per-call strategy is added without dropping the session id."""
        base, handler = self.make_logger("mychef.test.merge")
        log = bind_context(base, session_id="sess-9")

        log.info("resolved", extra={"strategy": "broad"})

        record = handler.records[0]
        assert record.session_id == "sess-9"
        assert record.strategy == "broad"
        assert "[session_id=sess-9] [strategy=broad]" in RichTextFormatter().format(record)

    def test_unknown_context_field_is_rejected(self):
        """Test only known context fields can be bound."""
        with pytest.raises(ValueError, match="request_id"):
            bind_context(request_id="r-1")

    def test_defaults_to_package_logger(self):
        """Test the adapter wraps the package logger when no base is given."""
        assert bind_context(session_id="s").logger is logger
