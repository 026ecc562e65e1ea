"""
Unit tests for structured logging utilities.
"""

import json
import logging
from io import StringIO

import pytest

from auditor.utils.logging import (
    JSONFormatter,
    get_logger,
    log_error_with_context,
    log_transition,
)


def capture(logger, level=logging.INFO) -> StringIO:
    """Attach a JSON handler writing to a string buffer."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.logger.addHandler(handler)
    logger.logger.setLevel(level)
    return stream


def test_json_formatter():
    """Test JSON formatter produces valid JSON output."""
    # Create formatter
    formatter = JSONFormatter()

    # Create log record
    logger = logging.getLogger("test_formatter")
    logger.setLevel(logging.INFO)

    # Create string buffer to capture output
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Log a message
    logger.info("Test message", extra={"file_name": "src/main.c", "commit": "abc123", "lines": 4})

    # Parse JSON
    log_data = json.loads(stream.getvalue())

    # Verify structure
    assert "timestamp" in log_data
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test_formatter"
    assert log_data["message"] == "Test message"
    assert log_data["file_name"] == "src/main.c"
    assert log_data["commit"] == "abc123"
    assert log_data["context"] == {"lines": 4}
    assert "source" in log_data


def test_get_logger_with_context():
    """Test getting logger with context."""
    logger = get_logger("test_module", file_name="src/main.c", commit="abc123")

    assert logger.extra["file_name"] == "src/main.c"
    assert logger.extra["commit"] == "abc123"


def test_adapter_context_reaches_output():
    """Test that adapter context and call extras are merged."""
    logger = get_logger("test_adapter", request_id="req-1")
    stream = capture(logger)

    logger.with_context(file_name="a.c").info("Marking lines", extra={"state": "Reviewed"})

    log_data = json.loads(stream.getvalue())
    assert log_data["request_id"] == "req-1"
    assert log_data["file_name"] == "a.c"
    assert log_data["context"]["state"] == "Reviewed"


def test_log_transition():
    """Test review state transition logging."""
    logger = get_logger("test_transition")
    stream = capture(logger)

    log_transition(logger, "src/main.c", "transform", "abc123", reviewed=12, modified=3, ignored=0)

    log_data = json.loads(stream.getvalue())
    assert log_data["file_name"] == "src/main.c"
    assert log_data["commit"] == "abc123"
    assert log_data["context"]["transition"] == "transform"
    assert log_data["context"]["modified_lines"] == 3


def test_log_error_with_context():
    """Test error logging with exception details."""
    logger = get_logger("test_error")
    stream = capture(logger, logging.ERROR)

    try:
        raise ValueError("bad range")
    except ValueError as e:
        log_error_with_context(logger, "Update failed", e, file_name="a.c")

    log_data = json.loads(stream.getvalue())
    assert log_data["level"] == "ERROR"
    assert log_data["file_name"] == "a.c"
    assert log_data["context"]["error_type"] == "ValueError"
    assert log_data["error"]["type"] == "ValueError"
    assert "bad range" in log_data["error"]["stack_trace"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
