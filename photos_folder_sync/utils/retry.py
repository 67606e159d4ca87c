"""
Retry utility with exponential backoff for idempotent API reads.

Only read calls (album listing, media search) go through here. Uploads and
create calls are never retried: a silent retry could create duplicate remote
media items.
"""
import time
import logging
from typing import Callable, TypeVar, Optional, Tuple
from functools import wraps

from photos_folder_sync.exceptions import TransportError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    exceptions: Tuple = (TransportError,),
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts.
                   Total attempts = max_retries + 1.
        initial_delay: Delay in seconds before the first retry.
        max_delay: Upper bound on the delay between retries.
        exponential_base: Multiplier applied to the delay after each retry.
        exceptions: Exception types that trigger a retry; anything else
                   propagates immediately.
        on_retry: Optional callback(exception, attempt_number) called before
                each retry. Defaults to a warning log line.
        sleep: Function used to wait between attempts.

    Returns:
        Decorated function with the same signature.

    Raises:
        The last exception raised if all attempts fail.

    Example:
        >>> @retry_with_backoff(max_retries=3, initial_delay=1.0)
        ... def fetch_page(token):
        ...     return transport.get_json('v1/albums', {'pageToken': token})
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            last_exception = None
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    if attempt < max_retries:
                        if on_retry:
                            on_retry(e, attempt + 1)
                        else:
                            logger.warning(
                                f"{func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                                f"Retrying in {delay:.1f} seconds..."
                            )

                        sleep(delay)
                        delay = min(delay * exponential_base, max_delay)
                    else:
                        logger.error(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                        )

            raise last_exception

        return wrapper
    return decorator
