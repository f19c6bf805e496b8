"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports the settings module so
no local .env file leaks into the test run.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("APP_COUNTER_STORE", "memory")
os.environ.setdefault("APP_FAIL_OPEN", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402

from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore  # noqa: E402

# 2024-01-01T10:00:00Z, aligned to both minute and hour boundaries
WINDOW_START = 1_704_103_200.0


@pytest.fixture
def clock() -> Mock:
    """Deterministic clock starting at the top of an hour."""
    return Mock(return_value=WINDOW_START)


@pytest.fixture
def store(clock: Mock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)
