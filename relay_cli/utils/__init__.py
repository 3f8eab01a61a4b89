"""Utility functions for relay.

This package provides utility modules:
- logging: Logging configuration and logger creation
- threading: Thread-pool fan-out for independent external calls
- signals: Deferring Ctrl-C while a state-changing step runs
"""

from .logging import setup_logging, get_logger, ColoredFormatter
from .threading import get_optimal_worker_count, map_concurrently
from .signals import defer_interrupts

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "ColoredFormatter",
    # Threading
    "get_optimal_worker_count",
    "map_concurrently",
    # Signals
    "defer_interrupts",
]
