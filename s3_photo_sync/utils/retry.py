"""
Retry utility with exponential backoff for object store operations.

Uploads are attempted once by default; a retry policy is opt-in through
``sync.max_retries`` in the configuration.
"""
import time
import logging
from typing import Callable, TypeVar, Optional, Tuple
from functools import wraps

logger = logging.getLogger(__name__)

T = TypeVar('T')


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None
) -> Callable:
    """
    Decorator that retries a function with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts.
                   Total attempts = max_retries + 1 (initial attempt + retries).
        initial_delay: Delay in seconds before the first retry.
        max_delay: Upper bound for the delay between retries.
        exponential_base: Delay multiplier applied after each retry.
        exceptions: Exception types that trigger a retry; others propagate at once.
        on_retry: Optional callback(exception, attempt_number) called before each retry.
                If None, a warning is logged.

    Returns:
        Decorated function with the same signature as the original.

    Raises:
        The last exception raised if all attempts fail.

    Example:
        >>> put = retry_with_backoff(max_retries=2, exceptions=(UploadError,))(client.put)
        >>> put(bucket, key, path, size)  # up to 3 attempts: waits 1s, then 2s
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        if max_retries:
                            logger.error(
                                f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                            )
                        raise

                    if on_retry:
                        on_retry(e, attempt + 1)
                    else:
                        logger.warning(
                            f"{func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                            f"Retrying in {delay:.1f} seconds..."
                        )

                    if delay > 0:
                        time.sleep(delay)
                    delay = min(delay * exponential_base, max_delay)

        return wrapper
    return decorator
