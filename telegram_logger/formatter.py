"""
Telegram Logger - Message Formatter.

============================================================
PURPOSE
============================================================
Render one LogRecord as a Telegram HTML message.

OUTPUT GUARANTEES:
- Length never exceeds FormatOptions.max_message_length
- Only <b> and <pre> tags are emitted, always balanced
- Truncation never cuts inside a tag or an HTML entity
- All user-supplied text is HTML-escaped

Pure function of (record, options, emojis). No I/O.

============================================================
"""

import html
import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .clock import ClockProtocol, SystemClock
from .config import DEFAULT_LEVEL_EMOJIS, FormatOptions
from .levels import TRACE_LEVELS
from .models import ExceptionInfo, LogRecord


logger = logging.getLogger(__name__)


TRUNCATION_MARKER = "\n\n... (truncated)"
TRUNCATION_RESERVE = 25
BATCH_SEPARATOR = "\n\n---\n\n"
MAX_TRACE_LINES = 20
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
BALANCED_TAGS = ("pre", "b")

_TAG_RE = re.compile(r"<[^>]*>?")


# ============================================================
# MARKUP HELPERS
# ============================================================

def escape_html(text: str) -> str:
    """Escape & < > " ' for Telegram HTML parse mode."""
    return html.escape(text, quote=True)


def truncate_safely(message: str, limit: int) -> str:
    """
    Cut message to at most `limit` characters without leaving a
    dangling tag or entity, then strip trailing whitespace.
    """
    truncated = message[:max(0, limit)]

    last_open = truncated.rfind("<")
    if last_open != -1 and last_open > truncated.rfind(">"):
        truncated = truncated[:last_open]

    last_amp = truncated.rfind("&")
    if last_amp != -1 and last_amp > truncated.rfind(";"):
        truncated = truncated[:last_amp]

    return truncated.rstrip()


def ensure_balanced_tags(message: str) -> str:
    """Append closing tags for every unmatched <pre> and <b>."""
    for tag in BALANCED_TAGS:
        missing = message.count(f"<{tag}>") - message.count(f"</{tag}>")
        if missing > 0:
            message += f"</{tag}>" * missing
    return message


def format_json(data: Mapping[str, Any]) -> str:
    """Pretty-print a mapping as JSON, keeping Unicode and slashes."""
    if not data:
        return ""
    try:
        return json.dumps(data, indent=4, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        # Circular structures and non-string keys
        return str(dict(data))


# ============================================================
# TELEGRAM FORMATTER
# ============================================================

class TelegramFormatter:
    """
    Formats log records for Telegram.

    Uses HTML parse mode.
    """

    def __init__(
        self,
        options: Optional[FormatOptions] = None,
        emojis: Optional[Mapping[str, str]] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Initialize formatter.

        Args:
            options: Formatting options (defaults apply when None)
            emojis: Emoji overrides merged over DEFAULT_LEVEL_EMOJIS
            clock: Clock used when a record has no valid timestamp
        """
        self.options = options or FormatOptions()
        self.emojis: Dict[str, str] = dict(DEFAULT_LEVEL_EMOJIS)
        if emojis:
            self.emojis.update({k.lower(): v for k, v in emojis.items()})
        self._clock = clock or SystemClock()

    def format(self, record: LogRecord) -> str:
        """Format one record."""
        opts = self.options
        level_name = (record.level_name or "INFO").upper()
        parts: List[str] = []

        # Header
        if opts.include_level:
            header = f"<b>{escape_html(level_name)}</b>"
            if opts.use_emojis:
                emoji = self.emojis.get(level_name.lower(), "")
                header = f"{emoji} {header}".strip()
            parts.append(header)

        # Date
        if opts.include_date:
            timestamp = record.timestamp
            if not isinstance(timestamp, datetime):
                timestamp = self._clock.now()
            parts.append("📅 " + timestamp.strftime(DATE_FORMAT))

        # Body
        parts.append("\n" + escape_html(record.message or ""))

        if opts.include_context and record.context:
            parts.append(self._block("Context", format_json(record.context)))

        if record.extra:
            parts.append(self._block("Extra", format_json(record.extra)))

        if opts.include_trace and level_name in TRACE_LEVELS:
            trace = self.format_stack_trace(self._resolve_exception(record))
            if trace:
                parts.append(self._block("Stack Trace", trace))

        return self._enforce_length("".join(parts))

    def format_batch(self, records: Iterable[LogRecord]) -> str:
        """Format records independently and join with a separator."""
        return BATCH_SEPARATOR.join(self.format(record) for record in records)

    @staticmethod
    def format_stack_trace(exception: Optional[ExceptionInfo]) -> str:
        """Render type, origin and frames, capped at MAX_TRACE_LINES lines."""
        if exception is None:
            return ""

        lines = [
            f"{exception.type}: {exception.message}",
            f"File: {exception.file or 'unknown'}:{exception.line or 0}",
        ]
        for index, frame in enumerate(exception.frames):
            if len(lines) >= MAX_TRACE_LINES:
                break
            lines.append(frame.render(index))

        return "\n".join(lines[:MAX_TRACE_LINES])

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    @staticmethod
    def _block(title: str, body: str) -> str:
        return f"\n\n<b>{title}:</b>\n<pre>{escape_html(body)}</pre>"

    @staticmethod
    def _resolve_exception(record: LogRecord) -> Optional[ExceptionInfo]:
        if record.exception is not None:
            return record.exception

        candidate = record.context.get("exception") if record.context else None
        if isinstance(candidate, ExceptionInfo):
            return candidate
        if isinstance(candidate, BaseException):
            return ExceptionInfo.from_exception(candidate)
        return None

    def _enforce_length(self, formatted: str) -> str:
        max_length = self.options.max_message_length

        if len(formatted) > max_length:
            limit = max_length - TRUNCATION_RESERVE
            if limit > 0:
                formatted = truncate_safely(formatted, limit) + TRUNCATION_MARKER
            else:
                formatted = truncate_safely(formatted, max_length)

        formatted = ensure_balanced_tags(formatted)

        if len(formatted) > max_length:
            # Too small for markup; fall back to plain text.
            logger.debug(f"max_message_length={max_length} too small for markup")
            formatted = truncate_safely(_TAG_RE.sub("", formatted), max_length)

        return formatted


__all__ = [
    "TRUNCATION_MARKER",
    "BATCH_SEPARATOR",
    "escape_html",
    "truncate_safely",
    "ensure_balanced_tags",
    "format_json",
    "TelegramFormatter",
]
