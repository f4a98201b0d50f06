"""
Telegram Logger - Rate Limiter.

============================================================
PURPOSE
============================================================
Local send budget shared by every TelegramService using the
same CounterStore.

- Per-second bucket keyed by unix second (TTL 2s)
- Per-minute bucket keyed by the minute's start second (TTL 65s)
- Cooldown flag set after a 429, expires after retry_after + 1s

allow() never mutates and never blocks; waiting out a cooldown
is the caller's job.

============================================================
"""

import logging
from typing import Optional

from .cache import CounterStore, InMemoryCounterStore
from .clock import ClockProtocol, SystemClock
from .config import RateLimitConfig


logger = logging.getLogger(__name__)


SECOND_KEY_PREFIX = "telegram_rate_limit_second_"
MINUTE_KEY_PREFIX = "telegram_rate_limit_minute_"
COOLDOWN_KEY = "telegram_rate_limit_cooldown"

SECOND_BUCKET_TTL = 2
MINUTE_BUCKET_TTL = 65


class RateLimiter:
    """
    Per-second / per-minute send counters plus throttle cooldown.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        store: Optional[CounterStore] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            config: Limits (defaults to RateLimitConfig())
            store: Shared counter store
            clock: Clock for bucket keys and cooldown expiry
        """
        self._config = config or RateLimitConfig()
        self._clock = clock or SystemClock()
        self._store = store or InMemoryCounterStore(self._clock)

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @property
    def store(self) -> CounterStore:
        return self._store

    def _keys(self):
        now = self._clock.unix_second()
        minute_start = now - (now % 60)
        return f"{SECOND_KEY_PREFIX}{now}", f"{MINUTE_KEY_PREFIX}{minute_start}"

    def allow(self) -> bool:
        """Check whether one more message fits the budget."""
        if not self._config.enabled:
            return True

        second_key, minute_key = self._keys()

        if int(self._store.get(second_key, 0)) >= self._config.max_per_second:
            return False
        if int(self._store.get(minute_key, 0)) >= self._config.max_per_minute:
            return False

        return True

    def record_sent(self) -> None:
        """Count a delivered message in both buckets."""
        second_key, minute_key = self._keys()
        self._store.increment(second_key, 1, ttl_seconds=SECOND_BUCKET_TTL)
        self._store.increment(minute_key, 1, ttl_seconds=MINUTE_BUCKET_TTL)

    def trigger_cooldown(self, retry_after: int) -> None:
        """Start a cooldown after Telegram asked us to back off."""
        duration = max(0, int(retry_after)) + 1
        expires_at = self._clock.timestamp() + duration
        self._store.put(COOLDOWN_KEY, expires_at, duration)
        logger.debug(f"Telegram cooldown set for {duration}s")

    def cooldown_remaining(self) -> float:
        """Seconds until the cooldown ends, 0 when inactive."""
        expires_at = self._store.get(COOLDOWN_KEY)
        if expires_at is None:
            return 0.0
        return max(0.0, float(expires_at) - self._clock.timestamp())

    @property
    def in_cooldown(self) -> bool:
        return self.cooldown_remaining() > 0

    def reset(self) -> None:
        """Clear the cooldown and the current buckets."""
        second_key, minute_key = self._keys()
        for key in (second_key, minute_key, COOLDOWN_KEY):
            self._store.forget(key)


__all__ = [
    "RateLimiter",
    "COOLDOWN_KEY",
]
