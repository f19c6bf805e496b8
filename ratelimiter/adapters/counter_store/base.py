"""Counter store interface.

The window limiter depends on this abstraction only, so the shared store
(Redis in production) can be swapped for the in-process store in tests and
single-instance deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Atomic key-value counter service with per-key expiry."""

    @abstractmethod
    def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        """Atomically increment ``key`` and return its new value.

        A missing (or expired) key is created with value 1 and given an expiry
        of ``ttl_seconds`` in the same atomic step. Concurrent calls on the
        same key must observe distinct, gapless successive values.

        Args:
            key: Window counter key.
            ttl_seconds: Expiry applied when the key is created.

        Returns:
            The counter value after this increment.

        Raises:
            CounterStoreUnavailableError: If the store cannot be reached in time.
            CounterStoreError: If the store rejects the operation.
        """
        raise NotImplementedError

    def ping(self) -> bool:
        """Return True when the store can serve increments."""
        return True
