"""Time-to-live caches for ticket responses and train stop sequences."""

import logging
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .models import Stop

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """A cached value and the moment it stops being valid."""

    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache(Generic[K, V]):
    """Insertion-ordered cache with per-entry expiry.

    Expired entries are dropped lazily on ``get`` and by a sweep that runs
    on the first access after ``sweep_interval`` seconds have elapsed.
    When ``max_size`` is reached the oldest inserted entry is evicted.
    """

    def __init__(
        self,
        ttl: float,
        max_size: int | None = None,
        sweep_interval: float = 600,
        clock: Callable[[], float] = time.time,
        name: str = "cache",
    ):
        """Initialize the cache.

        Args:
            ttl: Default time-to-live in seconds
            max_size: Maximum number of entries (None for no limit)
            sweep_interval: Seconds between proactive sweeps of expired entries
            clock: Time source, injectable for tests
            name: Name used in log messages
        """
        self.ttl = ttl
        self.max_size = max_size
        self.sweep_interval = sweep_interval
        self.name = name
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def get(self, key: K) -> V | None:
        """Get a live value, or None if absent or expired."""
        self._maybe_sweep()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: K, value: V, ttl: float | None = None) -> None:
        """Store a value for ``ttl`` seconds (the cache default when None)."""
        self._maybe_sweep()
        if key in self._entries:
            del self._entries[key]
        elif self.max_size is not None and len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug(f"{self.name}: evicted oldest entry {oldest!r}")

        expires_at = self._clock() + (self.ttl if ttl is None else ttl)
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: K) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        self._last_sweep = now
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(
                f"{self.name}: swept {len(expired)} expired entries, "
                f"{len(self._entries)} left"
            )
        return len(expired)

    def _maybe_sweep(self) -> None:
        if self._clock() - self._last_sweep >= self.sweep_interval:
            self.sweep()

    def stats(self) -> dict[str, Any]:
        """Get counts of valid and expired entries."""
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        return {
            "total": len(self._entries),
            "valid": len(self._entries) - expired,
            "expired": expired,
            "max_size": self.max_size,
            "ttl": f"{self.ttl:g}s",
        }

    def close(self) -> None:
        """Drop all entries; the cache stays usable afterwards."""
        self.clear()


class TicketCache(TTLCache[tuple[str, str, str], list[str]]):
    """Raw ticket query results keyed by (date, from code, to code)."""

    def __init__(
        self,
        ttl: float = 5 * 60,
        max_size: int | None = 1000,
        sweep_interval: float = 10 * 60,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(
            ttl=ttl,
            max_size=max_size,
            sweep_interval=sweep_interval,
            clock=clock,
            name="ticket cache",
        )


class StopSequenceCache(TTLCache[str, list[Stop]]):
    """Train stop sequences keyed by train number."""

    def __init__(
        self,
        ttl: float = 24 * 60 * 60,
        max_size: int | None = None,
        sweep_interval: float = 10 * 60,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(
            ttl=ttl,
            max_size=max_size,
            sweep_interval=sweep_interval,
            clock=clock,
            name="stop sequence cache",
        )
