"""
Telegram Logger - Severity Levels.

Registers the syslog-style levels missing from the standard
`logging` module (NOTICE, ALERT, EMERGENCY) and maps level names
to numeric values.
"""

import logging
from typing import Dict, Union


NOTICE = 25
ALERT = 60
EMERGENCY = 70

LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": NOTICE,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": ALERT,
    "emergency": EMERGENCY,
}

# Levels that get a stack trace block when an exception is attached.
TRACE_LEVELS = frozenset({"ERROR", "CRITICAL", "ALERT", "EMERGENCY"})


def register_levels() -> None:
    """Register NOTICE, ALERT and EMERGENCY with the logging module."""
    logging.addLevelName(NOTICE, "NOTICE")
    logging.addLevelName(ALERT, "ALERT")
    logging.addLevelName(EMERGENCY, "EMERGENCY")


def parse_level(level: Union[str, int, None]) -> int:
    """
    Parse a level name or number.

    Unknown names fall back to ERROR.
    """
    if isinstance(level, int):
        return level
    if level is None:
        return logging.ERROR
    text = str(level).strip().lower()
    if text.isdigit():
        return int(text)
    return LEVELS.get(text, logging.ERROR)


register_levels()
