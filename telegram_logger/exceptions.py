"""
Telegram Logger - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the error taxonomy for setup and delivery.

- ConfigurationError is fatal and raised at construction time
- DeliveryError subclasses classify a single failed send
- Delivery errors never escape TelegramService.send()

============================================================
EXCEPTION HIERARCHY
============================================================
TelegramLoggerError (base)
├── ConfigurationError
└── DeliveryError
    ├── ThrottledError
    ├── DeliveryTimeoutError
    ├── TransportError
    └── MalformedResponseError

============================================================
"""

from typing import Any, Dict, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class TelegramLoggerError(Exception):
    """
    Base exception for all telegram_logger errors.

    All exceptions carry:
    - context: for the diagnostic log entry
    - cause: the underlying library exception, if any
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.cause = cause

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(TelegramLoggerError):
    """Missing or invalid logger configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key

        super().__init__(message, context=context, **kwargs)
        self.config_key = config_key


# ============================================================
# DELIVERY ERRORS
# ============================================================

class DeliveryError(TelegramLoggerError):
    """Base class for a failed send attempt."""


class ThrottledError(DeliveryError):
    """Telegram answered 429 Too Many Requests."""

    def __init__(self, retry_after: int, **kwargs):
        context = kwargs.pop("context", {})
        context["retry_after"] = retry_after

        super().__init__(
            f"Throttled by Telegram, retry after {retry_after}s",
            context=context,
            **kwargs,
        )
        self.retry_after = retry_after


class DeliveryTimeoutError(DeliveryError):
    """The HTTP request timed out."""


class TransportError(DeliveryError):
    """Network failure or HTTP error status other than 429."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if status_code is not None:
            context["status_code"] = status_code

        super().__init__(message, context=context, **kwargs)
        self.status_code = status_code


class MalformedResponseError(DeliveryError):
    """Success-path response body was not a JSON object."""


__all__ = [
    "TelegramLoggerError",
    "ConfigurationError",
    "DeliveryError",
    "ThrottledError",
    "DeliveryTimeoutError",
    "TransportError",
    "MalformedResponseError",
]
