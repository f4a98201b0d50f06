"""
Telegram Logger - Delivery Service.

============================================================
PURPOSE
============================================================
Send formatted log messages to the Telegram Bot API.

FAILURE CLASSES:
- THROTTLED (429): cooldown set, never logged
- TIMEOUT: retried silently with a longer backoff
- CLIENT_ERROR / TRANSPORT: one diagnostic log entry each
- API_ERROR / MALFORMED: plain failure
- RATE_LIMITED: local budget exhausted, no request made

PRINCIPLES:
- Failures are reported as a result, never raised to the caller
- Diagnostics run with delivery suppressed so they cannot loop
  back into the Telegram channel
- All waits are blocking and go through the clock

============================================================
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generator, Optional

import requests

from .cache import CounterStore
from .clock import ClockProtocol, SystemClock
from .config import RateLimitConfig
from .exceptions import (
    DeliveryError,
    DeliveryTimeoutError,
    MalformedResponseError,
    ThrottledError,
    TransportError,
)
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)

# Diagnostics go here; never attach a TelegramHandler to it.
diagnostic_logger = logging.getLogger("telegram_logger.delivery")


DEFAULT_RETRY_AFTER = 3
MIN_TIMEOUT_BACKOFF_MS = 2000


# ============================================================
# DELIVERY SUPPRESSION
# ============================================================

_suppression = threading.local()


def is_delivery_suppressed() -> bool:
    """Check whether Telegram delivery is suppressed on this thread."""
    return getattr(_suppression, "active", False)


@contextmanager
def delivery_suppressed() -> Generator[None, None, None]:
    """
    Suppress Telegram delivery on this thread for the block.

    The previous state is restored on every exit path.
    """
    previous = is_delivery_suppressed()
    _suppression.active = True
    try:
        yield
    finally:
        _suppression.active = previous


# ============================================================
# SEND RESULT
# ============================================================

class ErrorKind(Enum):
    """Outcome classification of a single send attempt."""

    NONE = "none"
    """Delivered."""

    RATE_LIMITED = "rate_limited"
    """Local budget exhausted; no request made."""

    THROTTLED = "throttled"
    """Telegram answered 429."""

    TIMEOUT = "timeout"
    """Request timed out."""

    CLIENT_ERROR = "client_error"
    """HTTP error status other than 429."""

    TRANSPORT = "transport"
    """Network failure."""

    API_ERROR = "api_error"
    """Response body had ok=false."""

    MALFORMED = "malformed"
    """Response body was not a JSON object."""


@dataclass(frozen=True)
class SendResult:
    """Result of one send attempt."""

    ok: bool
    kind: ErrorKind = ErrorKind.NONE
    error: Optional[str] = None
    retry_after: Optional[int] = None

    @classmethod
    def success(cls) -> "SendResult":
        return cls(ok=True)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        error: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "SendResult":
        return cls(ok=False, kind=kind, error=error, retry_after=retry_after)

    def __bool__(self) -> bool:
        return self.ok


def _is_timeout_message(message: str) -> bool:
    return "timed out" in message.lower()


# ============================================================
# TELEGRAM SERVICE
# ============================================================

class TelegramService:
    """
    Sends messages to one bot via sendMessage.

    Owns a requests.Session bound to the bot endpoint.
    """

    API_BASE_URL = "https://api.telegram.org/bot"

    def __init__(
        self,
        bot_token: str,
        timeout: float = 10.0,
        rate_limit: Optional[RateLimitConfig] = None,
        store: Optional[CounterStore] = None,
        clock: Optional[ClockProtocol] = None,
        session: Optional[requests.Session] = None,
        api_base_url: Optional[str] = None,
    ):
        """
        Initialize Telegram service.

        Args:
            bot_token: Telegram bot token
            timeout: Per-request timeout in seconds
            rate_limit: Local send budget
            store: Shared counter store for the rate limiter
            clock: Clock for backoff sleeps and bucket keys
            session: HTTP session (created when None)
            api_base_url: Override of the Bot API base URL
        """
        self._bot_token = bot_token
        self._timeout = timeout
        self._clock = clock or SystemClock()
        self._rate_limiter = RateLimiter(rate_limit, store, self._clock)
        self._session = session or requests.Session()
        self._owns_session = session is None
        self._url = f"{api_base_url or self.API_BASE_URL}{bot_token}/sendMessage"

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    def close(self) -> None:
        """Close the HTTP session if this service created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "TelegramService":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --------------------------------------------------------
    # Single attempt
    # --------------------------------------------------------

    def send(self, chat_id: str, text: str, topic_id: Optional[int] = None) -> bool:
        """Send once. Returns True if Telegram accepted the message."""
        return self.deliver(chat_id, text, topic_id).ok

    def deliver(
        self,
        chat_id: str,
        text: str,
        topic_id: Optional[int] = None,
    ) -> SendResult:
        """Send once and classify the outcome."""
        if not self._rate_limiter.allow():
            return SendResult.failure(ErrorKind.RATE_LIMITED, "local rate limit reached")

        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
        }
        if topic_id is not None:
            payload["message_thread_id"] = topic_id

        try:
            data = self._post(payload)
        except ThrottledError as e:
            # Not logged: the diagnostic channel may be throttled too
            self._rate_limiter.trigger_cooldown(e.retry_after)
            return SendResult.failure(ErrorKind.THROTTLED, e.message, e.retry_after)
        except DeliveryTimeoutError as e:
            return SendResult.failure(ErrorKind.TIMEOUT, e.message)
        except TransportError as e:
            self._report_failure(e)
            kind = ErrorKind.CLIENT_ERROR if e.status_code is not None else ErrorKind.TRANSPORT
            return SendResult.failure(kind, e.message)
        except MalformedResponseError as e:
            return SendResult.failure(ErrorKind.MALFORMED, e.message)

        if data.get("ok") is True:
            self._rate_limiter.record_sent()
            return SendResult.success()

        return SendResult.failure(
            ErrorKind.API_ERROR,
            str(data.get("description", "Telegram returned ok=false")),
        )

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST to sendMessage.

        Returns:
            Decoded JSON body of a 2xx response

        Raises:
            ThrottledError, DeliveryTimeoutError, TransportError,
            MalformedResponseError
        """
        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout)
        except requests.Timeout as e:
            raise DeliveryTimeoutError(str(e), cause=e)
        except requests.RequestException as e:
            if _is_timeout_message(str(e)):
                raise DeliveryTimeoutError(str(e), cause=e)
            raise TransportError(str(e), cause=e)

        if response.status_code == 429:
            raise ThrottledError(self._retry_after(response))

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise TransportError(
                f"Telegram API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
                cause=e,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("Unparseable Telegram response", cause=e)

        if not isinstance(data, dict):
            raise MalformedResponseError("Telegram response is not a JSON object")

        return data

    @staticmethod
    def _retry_after(response: requests.Response) -> int:
        try:
            data = response.json()
            return int(data["parameters"]["retry_after"])
        except (ValueError, KeyError, TypeError):
            return DEFAULT_RETRY_AFTER

    def _report_failure(self, error: DeliveryError) -> None:
        with delivery_suppressed():
            diagnostic_logger.error(
                "delivery failed",
                extra={"error": error.message, "details": error.to_dict()},
            )

    # --------------------------------------------------------
    # Retry loop
    # --------------------------------------------------------

    @staticmethod
    def backoff_delay_ms(kind: ErrorKind, attempts_made: int, base_delay_ms: int) -> int:
        """
        Delay before the next attempt.

        Timeouts wait at least 2s; everything else backs off
        exponentially from base_delay_ms.
        """
        if kind == ErrorKind.TIMEOUT:
            return max(base_delay_ms * 2, MIN_TIMEOUT_BACKOFF_MS)
        return base_delay_ms * 2 ** (attempts_made - 1)

    def send_with_retry(
        self,
        chat_id: str,
        text: str,
        topic_id: Optional[int] = None,
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
    ) -> bool:
        """
        Send with bounded retries.

        Waits out an active cooldown before every attempt and backs
        off between failed attempts. Never raises.
        """
        max_attempts = max(1, max_attempts)
        attempts_made = 0

        while attempts_made < max_attempts:
            remaining = self._rate_limiter.cooldown_remaining()
            if remaining > 0:
                logger.debug(f"Waiting {remaining:.1f}s for Telegram cooldown")
                self._clock.sleep(remaining)

            result = self.deliver(chat_id, text, topic_id)
            if result.ok:
                return True

            attempts_made += 1

            if attempts_made < max_attempts:
                delay_ms = self.backoff_delay_ms(result.kind, attempts_made, base_delay_ms)
                logger.debug(
                    f"Telegram send failed ({result.kind.value}), "
                    f"attempt {attempts_made}/{max_attempts}, retrying in {delay_ms}ms"
                )
                self._clock.sleep(delay_ms / 1000)

        return False


__all__ = [
    "ErrorKind",
    "SendResult",
    "TelegramService",
    "delivery_suppressed",
    "is_delivery_suppressed",
]
