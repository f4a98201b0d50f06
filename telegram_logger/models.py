"""
Telegram Logger - Record Models.

============================================================
PURPOSE
============================================================
Canonical, read-only representation of one log call.

The formatter only ever sees LogRecord. Records coming from the
standard `logging` module are adapted at the boundary by
LogRecord.from_logging_record().

============================================================
"""

import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


# Attributes every logging.LogRecord carries; anything else was
# supplied through `extra=` by the caller.
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


# ============================================================
# EXCEPTION DATA
# ============================================================

@dataclass(frozen=True)
class StackFrame:
    """One frame of an exception's call stack."""

    file: str = "unknown"
    """Source file."""

    line: int = 0
    """Line number."""

    function: str = "unknown"
    """Function name."""

    class_name: str = ""
    """Owning class, empty for plain functions."""

    call_type: str = ""
    """Separator between class and function ("." for methods)."""

    def render(self, index: int) -> str:
        """Render as '#<index> <class><call_type><function>() in <file>:<line>'."""
        return "#%d %s%s%s() in %s:%d" % (
            index,
            self.class_name or "",
            self.call_type or "",
            self.function or "unknown",
            self.file or "unknown",
            self.line or 0,
        )


@dataclass(frozen=True)
class ExceptionInfo:
    """
    Snapshot of an exception attached to a log record.

    Frames are ordered innermost first.
    """

    type: str
    """Exception class name."""

    message: str = ""
    """str(exception)."""

    file: str = "unknown"
    """File where the exception was raised."""

    line: int = 0
    """Line where the exception was raised."""

    frames: Tuple[StackFrame, ...] = ()
    """Call stack, innermost first."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExceptionInfo":
        """Build from a live exception and its traceback."""
        exc_type = type(exc)
        if exc_type.__module__ in ("builtins", "__main__"):
            type_name = exc_type.__qualname__
        else:
            type_name = f"{exc_type.__module__}.{exc_type.__qualname__}"

        frames = []
        for frame, lineno in traceback.walk_tb(exc.__traceback__):
            code = frame.f_code
            class_name = ""
            owner = frame.f_locals.get("self")
            if owner is not None:
                class_name = type(owner).__qualname__
            else:
                owner = frame.f_locals.get("cls")
                if isinstance(owner, type):
                    class_name = owner.__qualname__
            frames.append(StackFrame(
                file=code.co_filename,
                line=lineno or 0,
                function=code.co_name,
                class_name=class_name,
                call_type="." if class_name else "",
            ))
        frames.reverse()

        raised_at = frames[0] if frames else StackFrame()
        return cls(
            type=type_name,
            message=str(exc),
            file=raised_at.file,
            line=raised_at.line,
            frames=tuple(frames),
        )


# ============================================================
# LOG RECORD
# ============================================================

@dataclass(frozen=True)
class LogRecord:
    """
    Normalized log record.

    Created once per log call and never mutated.
    """

    level_name: str
    """Level name, any case."""

    message: str = ""
    """Free-text message."""

    timestamp: Optional[datetime] = None
    """When the record was created; None means 'now'."""

    context: Dict[str, Any] = field(default_factory=dict)
    """Structured context supplied by the caller."""

    extra: Dict[str, Any] = field(default_factory=dict)
    """Data added by processors / `extra=` attributes."""

    exception: Optional[ExceptionInfo] = None
    """Attached exception, if any."""

    @classmethod
    def from_logging_record(cls, record: logging.LogRecord) -> "LogRecord":
        """
        Adapt a standard library record.

        A dict passed as `extra={"context": {...}}` becomes the
        context; every other non-standard attribute lands in extra.
        """
        context: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_ATTRS:
                continue
            if key == "context" and isinstance(value, dict):
                context = dict(value)
            else:
                extra[key] = value

        exception = None
        if record.exc_info and record.exc_info[1] is not None:
            exception = ExceptionInfo.from_exception(record.exc_info[1])

        return cls(
            level_name=record.levelname,
            message=record.getMessage(),
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            context=context,
            extra=extra,
            exception=exception,
        )


__all__ = [
    "StackFrame",
    "ExceptionInfo",
    "LogRecord",
]
