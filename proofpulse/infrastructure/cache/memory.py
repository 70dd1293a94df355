# ==============================================================================
# In-Memory TTL Cache
# ==============================================================================
"""
Thread-safe in-memory implementation of the Cache interface.

Provides:
- Per-entry expiry, reset (not extended) on every set
- Lazy eviction of expired entries on read
- Periodic sweep that evicts expired entries nobody reads again

Each entry is stored next to its own expiry timestamp. A single lock
serializes access; the sweep holds it only for one scan of the entries.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Hashable, TypeVar

from proofpulse.base import Cache
from proofpulse.utils.periodic import PeriodicTask

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


class TTLCache(Cache[K, V]):
    """
    Expiring key-value store.

    An entry expires once ``clock() >= set_time + ttl_seconds``; a TTL of 0
    therefore expires immediately. Pass ``sweep_interval_seconds=None`` to
    run without the background sweep (``sweep()`` can still be called).

    Args:
        ttl_seconds: Lifetime of each entry, measured from its last set.
        sweep_interval_seconds: Interval of the background sweep, or None.
        clock: Time source in seconds. Defaults to ``time.monotonic``.
        name: Name used for the sweep thread and log messages.
    """

    def __init__(
        self,
        ttl_seconds: float,
        sweep_interval_seconds: float | None = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "ttl-cache",
    ):
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must not be negative, got {ttl_seconds}")

        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[K, tuple[V, float]] = {}
        self._lock = threading.Lock()

        self._sweeper: PeriodicTask | None = None
        if sweep_interval_seconds is not None:
            self._sweeper = PeriodicTask(self.sweep, sweep_interval_seconds, f"{name}-sweep")
            self._sweeper.start()

    # ==========================================================================
    # Cache Interface Implementation
    # ==========================================================================

    def get(self, key: K) -> V | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + self.ttl_seconds)

    def delete(self, key: K) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # ==========================================================================
    # Additional Methods (beyond ABC)
    # ==========================================================================

    def sweep(self) -> int:
        """
        Evict every expired entry.

        Returns:
            Count of entries evicted
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug("%s evicted %d expired entries", self.name, len(expired))
        return len(expired)

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None

    def close(self) -> None:
        """Stop the background sweep."""
        if self._sweeper is not None:
            self._sweeper.stop()
            self._sweeper = None

    def __enter__(self) -> "TTLCache[K, V]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
