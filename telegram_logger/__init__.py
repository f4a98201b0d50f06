"""
Telegram Logger.

============================================================
PURPOSE
============================================================

Ships application log records to a Telegram chat through the
Bot API, within Telegram's rate and size limits.

============================================================
DATA FLOW
============================================================

logging call → TelegramHandler → TelegramFormatter → TelegramService
                (level filter)    (HTML, ≤4096)     (rate check → POST
                                                     → classify → retry)

============================================================
FAIL-SAFE BEHAVIOR
============================================================

- Delivery failures never raise into the application
- Throttling (429) and timeouts are never logged
- Other failures are logged once to `telegram_logger.delivery`
  with Telegram delivery suppressed

============================================================
USAGE
============================================================

```python
import logging
from telegram_logger import create_telegram_logger, TelegramLoggerConfig

# From TELEGRAM_LOG_* environment variables (.env supported)
log = create_telegram_logger()

# Or explicitly
config = TelegramLoggerConfig(bot_token="123:abc", chat_id="-100200300")
log = create_telegram_logger(config, level="warning")

try:
    process_order(order)
except Exception:
    log.exception("Order failed", extra={"context": {"order_id": order.id}})
```

============================================================
"""

from .cache import CounterStore, InMemoryCounterStore
from .clock import ClockProtocol, MockClock, SystemClock
from .config import (
    DEFAULT_LEVEL_EMOJIS,
    FormatOptions,
    RateLimitConfig,
    RetryPolicy,
    TelegramLoggerConfig,
)
from .exceptions import (
    ConfigurationError,
    DeliveryError,
    DeliveryTimeoutError,
    MalformedResponseError,
    TelegramLoggerError,
    ThrottledError,
    TransportError,
)
from .factory import create_telegram_logger
from .formatter import TelegramFormatter
from .handler import TelegramHandler
from .levels import ALERT, EMERGENCY, NOTICE, parse_level
from .models import ExceptionInfo, LogRecord, StackFrame
from .rate_limiter import RateLimiter
from .service import (
    ErrorKind,
    SendResult,
    TelegramService,
    delivery_suppressed,
    is_delivery_suppressed,
)


__version__ = "1.0.0"

__all__ = [
    # Config
    "DEFAULT_LEVEL_EMOJIS",
    "FormatOptions",
    "RateLimitConfig",
    "RetryPolicy",
    "TelegramLoggerConfig",

    # Models
    "ExceptionInfo",
    "LogRecord",
    "StackFrame",

    # Levels
    "NOTICE",
    "ALERT",
    "EMERGENCY",
    "parse_level",

    # Components
    "TelegramFormatter",
    "RateLimiter",
    "TelegramService",
    "TelegramHandler",
    "create_telegram_logger",
    "ErrorKind",
    "SendResult",
    "delivery_suppressed",
    "is_delivery_suppressed",

    # Infrastructure
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "CounterStore",
    "InMemoryCounterStore",

    # Errors
    "TelegramLoggerError",
    "ConfigurationError",
    "DeliveryError",
    "ThrottledError",
    "DeliveryTimeoutError",
    "TransportError",
    "MalformedResponseError",
]
