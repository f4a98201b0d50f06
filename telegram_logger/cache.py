"""
Telegram Logger - Counter Store.

============================================================
RESPONSIBILITY
============================================================
Key-value store with per-key TTL used for rate-limit counters
and the throttle cooldown flag.

- increment() is atomic and re-arms the key's TTL
- Expired keys behave as absent
- Shared by every TelegramService that receives the same store

============================================================
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from .clock import ClockProtocol, SystemClock


# ============================================================
# STORE PROTOCOL
# ============================================================

class CounterStore(ABC):
    """
    Abstract TTL key-value store.

    Implementations backed by an external cache (Redis, memcached)
    must provide the same atomicity for increment().
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a live value or default."""
        pass

    @abstractmethod
    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value that expires after ttl_seconds."""
        pass

    @abstractmethod
    def increment(self, key: str, amount: int = 1, ttl_seconds: Optional[float] = None) -> int:
        """
        Atomically add amount to an integer counter.

        Missing or expired keys start from zero. When ttl_seconds
        is given the key's expiry is reset to now + ttl_seconds.

        Returns:
            The new counter value
        """
        pass

    @abstractmethod
    def ttl(self, key: str) -> Optional[float]:
        """Seconds until the key expires, or None if absent."""
        pass

    @abstractmethod
    def forget(self, key: str) -> None:
        """Remove a key."""
        pass

    def has(self, key: str) -> bool:
        """Check whether a live key exists."""
        return self.ttl(key) is not None


# ============================================================
# IN-MEMORY STORE
# ============================================================

class InMemoryCounterStore(CounterStore):
    """
    Process-local CounterStore.

    All operations hold a single lock, so concurrent increments
    from several threads never lose updates.
    """

    def __init__(self, clock: Optional[ClockProtocol] = None):
        """
        Initialize store.

        Args:
            clock: Clock used for expiry (defaults to SystemClock)
        """
        self._clock = clock or SystemClock()
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> Optional[Tuple[Any, Optional[float]]]:
        # Caller must hold the lock.
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock.timestamp():
            del self._data[key]
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._live_entry(key)
            return default if entry is None else entry[0]

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._data[key] = (value, self._clock.timestamp() + ttl_seconds)

    def increment(self, key: str, amount: int = 1, ttl_seconds: Optional[float] = None) -> int:
        with self._lock:
            entry = self._live_entry(key)
            current, expires_at = entry if entry is not None else (0, None)
            value = max(0, int(current) + amount)
            if ttl_seconds is not None:
                expires_at = self._clock.timestamp() + ttl_seconds
            self._data[key] = (value, expires_at)
            return value

    def ttl(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            expires_at = entry[1]
            if expires_at is None:
                return float("inf")
            return max(0.0, expires_at - self._clock.timestamp())

    def forget(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            now = self._clock.timestamp()
            return sum(
                1 for _, expires_at in self._data.values()
                if expires_at is None or expires_at > now
            )


__all__ = [
    "CounterStore",
    "InMemoryCounterStore",
]
