"""Threading helpers for fanning out independent git/API calls."""

import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def is_free_threading_enabled() -> bool:
    """Detect if Python is running with free-threading enabled.

    Returns:
        True if running on Python 3.13+ with the GIL disabled
    """
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    return is_gil_enabled is not None and not is_gil_enabled()


def get_optimal_worker_count(user_specified: Optional[int] = None, cap: int = 32) -> int:
    """Calculate a worker count for I/O-bound fan-out.

    Args:
        user_specified: User-specified worker count, if provided
        cap: Upper bound on the number of workers

    Returns:
        Number of workers for parallel processing
    """
    if user_specified is not None and user_specified > 0:
        return min(user_specified, cap)

    cpu_count = os.cpu_count() or 1
    if is_free_threading_enabled():
        return min(cap, cpu_count * 2)
    # CPU_count + 4 is a good heuristic for I/O-bound work
    return min(cap, cpu_count + 4)


def map_concurrently(func: Callable[[T], R], items: Iterable[T], max_workers: Optional[int] = None) -> List[R]:
    """Run ``func`` over ``items`` in a thread pool and return results in input order.

    The calls have no ordering dependency on each other; they are awaited
    jointly and exceptions propagate from the first failing item.
    """
    items = list(items)
    if not items:
        return []
    workers = min(len(items), get_optimal_worker_count(max_workers, cap=10))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, items))
