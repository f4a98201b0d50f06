"""
Telegram Logger - Logging Handler.

Bridges the standard `logging` module to TelegramService.
Delivery failures never propagate into the application.
"""

import logging
from typing import Optional

from .config import RetryPolicy
from .formatter import TelegramFormatter
from .models import LogRecord
from .service import TelegramService, delivery_suppressed, is_delivery_suppressed


class TelegramHandler(logging.Handler):
    """
    Logging handler that sends records to a Telegram chat.

    Level filtering is done by logging.Handler itself. Records are
    emitted without the handler lock so one slow delivery does not
    stall other threads.
    """

    def __init__(
        self,
        service: TelegramService,
        chat_id: str,
        topic_id: Optional[int] = None,
        level: int = logging.ERROR,
        retry: Optional[RetryPolicy] = None,
        formatter: Optional[TelegramFormatter] = None,
    ):
        """
        Initialize handler.

        Args:
            service: Delivery service
            chat_id: Destination chat
            topic_id: Optional forum topic
            level: Minimum level handled
            retry: Retry policy (defaults to RetryPolicy())
            formatter: Message formatter (defaults to TelegramFormatter())
        """
        super().__init__(level)
        self.service = service
        self.chat_id = chat_id
        self.topic_id = topic_id
        self.retry = retry or RetryPolicy()
        self.telegram_formatter = formatter or TelegramFormatter()
        self.enabled = True

    def set_telegram_formatter(self, formatter: TelegramFormatter) -> None:
        """Replace the message formatter."""
        self.telegram_formatter = formatter

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def format(self, record: logging.LogRecord) -> str:
        return self.telegram_formatter.format(LogRecord.from_logging_record(record))

    def handle(self, record: logging.LogRecord):
        """
        Filter and emit without taking the handler lock.

        Backoff and cooldown sleeps block only the logging thread;
        TelegramService is safe to share between threads.
        """
        rv = self.filter(record)
        if isinstance(rv, logging.LogRecord):
            record = rv
        if rv:
            self.emit(record)
        return rv

    def emit(self, record: logging.LogRecord) -> None:
        if not self.enabled or is_delivery_suppressed():
            return

        # Anything logged while delivering must not come back here.
        with delivery_suppressed():
            try:
                message = self.format(record)
                self.send(message)
            except Exception:
                self.handleError(record)

    def send(self, message: str) -> bool:
        """Deliver an already formatted message per the retry policy."""
        if self.retry.enabled:
            return self.service.send_with_retry(
                self.chat_id,
                message,
                self.topic_id,
                max_attempts=self.retry.max_attempts,
                base_delay_ms=self.retry.delay_ms,
            )
        return self.service.send(self.chat_id, message, self.topic_id)

    def close(self) -> None:
        try:
            self.service.close()
        finally:
            super().close()
