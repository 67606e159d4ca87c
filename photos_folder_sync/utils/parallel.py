"""
Thread-pool helpers for I/O-bound sync work.

Uploads and per-directory syncs spend their time waiting on HTTP, so threads
are used throughout. A worker count of 1 runs everything in the calling thread,
which reproduces strictly sequential behaviour.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, TypeVar, Sequence

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


def parallel_map(
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = 1,
    thread_name_prefix: str = "sync"
) -> List[R]:
    """
    Apply a function to items, returning results in input order.

    Args:
        func: Function to apply to each item
        items: Items to process
        max_workers: Maximum number of worker threads. 1 means run inline.
        thread_name_prefix: Prefix for worker thread names (shows up in logs)

    Returns:
        List of results; result at index i corresponds to items[i].

    Raises:
        The first exception raised by ``func``, in input order, once every
        submitted call has finished.
    """
    if not items:
        return []

    if max_workers <= 1 or len(items) == 1:
        return [func(item) for item in items]

    workers = min(max_workers, len(items))
    logger.debug(f"Processing {len(items)} items with {workers} workers")
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=thread_name_prefix) as executor:
        futures = [executor.submit(func, item) for item in items]
    # Leaving the with-block joins every future
    return [future.result() for future in futures]
