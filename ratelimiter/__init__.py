"""Fixed-window distributed rate limiter."""

__version__ = "0.1.0"
