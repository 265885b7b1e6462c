"""
Tests for logging_setup module.

Verifies:
- JSON structured logging format
- Component tagging and session correlation
- PII-aware logging helper
- Log level configuration
"""
import json
import logging
from datetime import datetime
from io import StringIO

import pytest

from logging_setup import (
    Component,
    JSONFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture
def capture_logs():
    """Capture log output to a string buffer."""
    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(JSONFormatter())

    logger = logging.getLogger()
    logger.handlers = []
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield buffer

    logger.handlers = []


def _entries(buffer):
    return [json.loads(line) for line in buffer.getvalue().strip().split("\n") if line]


def test_json_formatter_basic(capture_logs):
    logger = get_logger(Component.NARRATION)
    logger.info("Segment dispatched", segment_index=1)

    entry = _entries(capture_logs)[0]
    assert entry["severity"] == "info"
    assert entry["component"] == "narration"
    assert entry["message"] == "Segment dispatched"
    assert entry["segment_index"] == 1


def test_timestamp_is_iso8601(capture_logs):
    get_logger(Component.PLAYER).info("Timestamp test")

    timestamp = _entries(capture_logs)[0]["timestamp"]
    assert datetime.fromisoformat(timestamp.replace("Z", "+00:00")) is not None


def test_session_id_correlation(capture_logs):
    get_logger(Component.PLAYER, session_id="narr_123").info("Session test")
    assert _entries(capture_logs)[0]["session_id"] == "narr_123"


def test_session_id_absent_when_not_provided(capture_logs):
    get_logger(Component.RECOGNIZER).info("No session")
    assert "session_id" not in _entries(capture_logs)[0]


def test_with_session_keeps_component(capture_logs):
    session_logger = get_logger(Component.PLAYER).with_session("narr_456")
    session_logger.info("With session")

    entry = _entries(capture_logs)[0]
    assert entry["session_id"] == "narr_456"
    assert entry["component"] == "player"


def test_debug_pii_marks_fields(capture_logs):
    get_logger(Component.NARRATION).debug_pii("Phrase recognised", phrase="please continue")

    entry = _entries(capture_logs)[0]
    assert entry["severity"] == "debug"
    assert entry["pii"] == {"phrase": "please continue"}


def test_severity_levels(capture_logs):
    logger = get_logger(Component.VOICES)
    logger.debug("d")
    logger.info("i")
    logger.warning("w")
    logger.error("e")

    assert [e["severity"] for e in _entries(capture_logs)] == ["debug", "info", "warning", "error"]


def test_component_string_fallback(capture_logs):
    get_logger("custom_component").info("Test")
    assert _entries(capture_logs)[0]["component"] == "custom_component"


def test_non_serializable_fields_are_stringified(capture_logs):
    get_logger(Component.RECIPES).info("Odd value", value=object())
    assert _entries(capture_logs)[0]["value"].startswith("<object object")


def test_exception_logging(capture_logs):
    logger = get_logger(Component.CONTROL_API)
    try:
        raise ValueError("Test exception")
    except ValueError:
        logger.exception("Exception occurred")

    entry = _entries(capture_logs)[0]
    assert entry["severity"] == "error"
    assert "ValueError: Test exception" in entry["exception"]


def test_setup_logging_json():
    setup_logging(level="DEBUG", use_json=True)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)


def test_setup_logging_text():
    setup_logging(level="warning", use_json=False)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == 1
    assert not isinstance(root_logger.handlers[0].formatter, JSONFormatter)
