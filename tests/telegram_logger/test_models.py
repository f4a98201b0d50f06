"""
Tests for record models and the logging adapter.
"""

import logging
import sys
from datetime import datetime, timezone

import pytest

from telegram_logger.levels import ALERT, EMERGENCY, NOTICE, parse_level
from telegram_logger.models import ExceptionInfo, LogRecord, StackFrame


class Exploder:
    """Raises from inside a method so frames carry a class."""

    def run(self):
        raise ValueError("boom")


def make_logging_record(msg="Payment %s failed", args=("#42",), level=logging.ERROR, exc_info=None):
    return logging.LogRecord(
        name="app.payments",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


# ============================================================
# EXCEPTION INFO
# ============================================================

class TestExceptionInfo:

    def test_from_exception_captures_type_and_message(self):
        try:
            Exploder().run()
        except ValueError as e:
            info = ExceptionInfo.from_exception(e)

        assert info.type == "ValueError"
        assert info.message == "boom"

    def test_frames_are_innermost_first(self):
        try:
            Exploder().run()
        except ValueError as e:
            info = ExceptionInfo.from_exception(e)

        assert info.frames[0].function == "run"
        assert info.frames[0].class_name == "Exploder"
        assert info.frames[0].call_type == "."
        assert info.file == info.frames[0].file
        assert info.line == info.frames[0].line
        assert info.file.endswith("test_models.py")

    def test_non_builtin_type_is_qualified(self):
        class CustomError(Exception):
            pass

        info = ExceptionInfo.from_exception(CustomError("x"))

        assert info.type.endswith("CustomError")
        assert "." in info.type

    def test_exception_without_traceback(self):
        info = ExceptionInfo.from_exception(RuntimeError("never raised"))

        assert info.frames == ()
        assert info.file == "unknown"
        assert info.line == 0

    def test_stack_frame_defaults(self):
        frame = StackFrame()

        assert frame.file == "unknown"
        assert frame.line == 0
        assert frame.function == "unknown"


# ============================================================
# LOGGING ADAPTER
# ============================================================

class TestFromLoggingRecord:

    def test_basic_fields(self):
        record = make_logging_record()

        adapted = LogRecord.from_logging_record(record)

        assert adapted.level_name == "ERROR"
        assert adapted.message == "Payment #42 failed"
        assert adapted.timestamp == datetime.fromtimestamp(record.created, tz=timezone.utc)
        assert adapted.context == {}
        assert adapted.extra == {}
        assert adapted.exception is None

    def test_context_and_extra_attributes(self):
        record = make_logging_record()
        record.context = {"user_id": 123}
        record.request_id = "req-1"

        adapted = LogRecord.from_logging_record(record)

        assert adapted.context == {"user_id": 123}
        assert adapted.extra == {"request_id": "req-1"}

    def test_non_dict_context_goes_to_extra(self):
        record = make_logging_record()
        record.context = "not a mapping"

        adapted = LogRecord.from_logging_record(record)

        assert adapted.context == {}
        assert adapted.extra == {"context": "not a mapping"}

    def test_exc_info_becomes_exception(self):
        try:
            Exploder().run()
        except ValueError:
            record = make_logging_record(exc_info=sys.exc_info())

        adapted = LogRecord.from_logging_record(record)

        assert adapted.exception is not None
        assert adapted.exception.type == "ValueError"
        assert adapted.exception.frames[0].class_name == "Exploder"

    def test_custom_level_name(self):
        record = make_logging_record(level=ALERT)

        assert LogRecord.from_logging_record(record).level_name == "ALERT"


# ============================================================
# LEVELS
# ============================================================

class TestLevels:

    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("notice", NOTICE),
        ("warning", logging.WARNING),
        ("error", logging.ERROR),
        ("critical", logging.CRITICAL),
        ("alert", ALERT),
        ("emergency", EMERGENCY),
    ])
    def test_parse_level_names(self, name, expected):
        assert parse_level(name) == expected
        assert parse_level(name.upper()) == expected

    def test_unknown_level_defaults_to_error(self):
        assert parse_level("verbose") == logging.ERROR
        assert parse_level(None) == logging.ERROR

    def test_numeric_levels_pass_through(self):
        assert parse_level(15) == 15
        assert parse_level("35") == 35

    def test_custom_levels_are_registered(self):
        assert logging.getLevelName(NOTICE) == "NOTICE"
        assert logging.getLevelName(EMERGENCY) == "EMERGENCY"
