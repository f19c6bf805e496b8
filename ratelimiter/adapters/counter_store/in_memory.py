"""In-process counter store.

Notes:
- Per-process only: several service instances each keep their own counters.
- Thread-safe: a lock linearizes increments, matching what Redis guarantees.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from ratelimiter.adapters.counter_store.base import AbstractCounterStore


@dataclass
class _CounterEntry:
    value: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store backed by a dict with lazy expiry.

    Window keys are never reused once their window has passed, so expired
    entries are swept during increments, at most once per shortest TTL seen.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _CounterEntry] = {}
        self._sweep_interval: float | None = None
        self._next_sweep_at = 0.0

    def _maybe_sweep(self, now: float, ttl_seconds: int) -> None:
        # Caller holds the lock
        if self._sweep_interval is None or ttl_seconds < self._sweep_interval:
            self._sweep_interval = ttl_seconds
        if now < self._next_sweep_at:
            return
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._next_sweep_at = now + self._sweep_interval

    def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        with self._lock:
            now = self._clock()
            self._maybe_sweep(now, ttl_seconds)
            entry = self._entries.get(key)
            if entry is None or entry.expires_at <= now:
                entry = _CounterEntry(value=0, expires_at=now + ttl_seconds)
                self._entries[key] = entry
            entry.value += 1
            return entry.value

    def get(self, key: str) -> int | None:
        """Return the live value for ``key`` or None when absent/expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.expires_at <= self._clock():
                return None
            return entry.value

    def ttl(self, key: str) -> float | None:
        """Seconds until ``key`` expires, or None when absent/expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            remaining = entry.expires_at - self._clock()
            return remaining if remaining > 0 else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
