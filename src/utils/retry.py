"""Retry utilities with exponential backoff."""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar


logger = logging.getLogger(__name__)

# Type variable for generic function signatures
F = TypeVar("F", bound=Callable[..., Any])


def exponential_backoff_retry(
    retry_on: tuple[type[BaseException], ...],
    max_retries: int = 3,
    delays: list[float] | None = None,
) -> Callable[[F], F]:
    """Decorator for exponential backoff retry (1s, 2s, 4s).

    Used for startup readiness checks against the cache and database, so a
    service starting alongside its backends does not fail on the first
    refused connection.

    Args:
        retry_on: Exception types that trigger a retry.
        max_retries: Maximum number of retry attempts (default: 3).
        delays: List of delay seconds between retries (default: [1, 2, 4]).

    Returns:
        Callable: Decorated function with retry logic.

    Examples:
        >>> @exponential_backoff_retry(retry_on=(ConnectionError,))
        ... def ping_backend():
        ...     pass
    """
    if delays is None:
        delays = [1, 2, 4]
    if len(delays) < max_retries:
        raise ValueError("delays must provide one entry per retry")

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if attempt >= max_retries:
                        raise
                    delay = delays[attempt]
                    logger.warning(
                        f"{func.__name__} failed ({e}), retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
            raise RuntimeError(
                f"Max retries ({max_retries}) exhausted for {func.__name__}"
            )

        return wrapper  # type: ignore

    return decorator
