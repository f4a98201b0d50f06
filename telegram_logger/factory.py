"""
Telegram Logger - Logger Factory.

============================================================
PURPOSE
============================================================
Build a ready-to-use `logging.Logger` that ships records to
Telegram.

- Disabled configuration yields a logger with a NullHandler
- Missing credentials raise ConfigurationError here, before any
  handler exists

============================================================
"""

import logging
from typing import Any, Optional

from .cache import CounterStore
from .clock import ClockProtocol
from .config import TelegramLoggerConfig
from .formatter import TelegramFormatter
from .handler import TelegramHandler
from .levels import parse_level
from .service import TelegramService


logger = logging.getLogger(__name__)


def create_telegram_logger(
    config: Optional[TelegramLoggerConfig] = None,
    name: str = "telegram",
    store: Optional[CounterStore] = None,
    clock: Optional[ClockProtocol] = None,
    **overrides: Any,
) -> logging.Logger:
    """
    Create a logger with a TelegramHandler attached.

    Args:
        config: Base configuration (defaults to from_env())
        name: Logger name
        store: Shared rate-limit counter store
        clock: Clock for the service and formatter
        **overrides: Fields merged over config

    Returns:
        Configured logger

    Raises:
        ConfigurationError: If bot_token or chat_id is missing
    """
    config = (config or TelegramLoggerConfig.from_env()).merged(**overrides)

    target = logging.getLogger(name)
    for existing in list(target.handlers):
        if isinstance(existing, (TelegramHandler, logging.NullHandler)):
            target.removeHandler(existing)
            existing.close()

    if not config.enabled:
        logger.info(f"Telegram logging disabled for logger '{name}'")
        target.addHandler(logging.NullHandler())
        return target

    config.validate()

    service = TelegramService(
        bot_token=config.bot_token,
        timeout=config.timeout,
        rate_limit=config.rate_limit,
        store=store,
        clock=clock,
    )
    formatter = TelegramFormatter(
        options=config.format,
        emojis=config.emojis,
        clock=clock,
    )
    handler = TelegramHandler(
        service=service,
        chat_id=config.chat_id,
        topic_id=config.topic_id,
        level=parse_level(config.level),
        retry=config.retry,
        formatter=formatter,
    )

    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > handler.level:
        target.setLevel(handler.level)

    logger.info(f"Telegram logging enabled for logger '{name}' (chat {config.chat_id})")
    return target
