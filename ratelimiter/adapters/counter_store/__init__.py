"""Counter store adapters - atomic window counters behind one interface."""

from ratelimiter.adapters.counter_store.base import AbstractCounterStore
from ratelimiter.adapters.counter_store.factory import create_counter_store
from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore
from ratelimiter.adapters.counter_store.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
