"""
Retry decorators with exponential backoff for query backend calls

Provides resilient retry logic for transient failures with:
- Exponential backoff (base 2.0)
- Jitter to prevent thundering herd
- Configurable max retries
- Backend-specific exception filtering (throttling, connection resets)
- Callback support for metrics integration

Usage:
    from utils.retry import retry_backend_operation

    @retry_backend_operation(max_retries=3, base_delay=1.0)
    def start_query(client, query):
        return client.start_query_execution(QueryString=query)
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)


def _backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float,
    jitter: bool,
) -> float:
    """Delay before retry number ``attempt + 1``."""
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    # +/-25% jitter
    if jitter:
        jitter_amount = delay * 0.25
        delay = delay + random.uniform(-jitter_amount, jitter_amount)
        delay = max(0.1, delay)

    return delay


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    retry_if: Optional[Callable[[Exception], bool]] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Decorator that retries a function with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Add random jitter to prevent thundering herd (default: True)
        retryable_exceptions: Tuple of exception types to retry (default: all exceptions)
        retry_if: Predicate an exception must also satisfy to be retried
        on_retry: Callback function(attempt, exception, delay) called on each retry

    Returns:
        Decorated function with retry logic

    Example:
        @retry_with_backoff(
            max_retries=5,
            retryable_exceptions=(ConnectionError, TimeoutError),
            on_retry=lambda attempt, exc, delay: print(f"Retry {attempt}: {exc}")
        )
        def download_results(location):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            func_name = getattr(func, '__name__', 'function')

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    retryable = not retryable_exceptions or isinstance(e, retryable_exceptions)
                    if not retryable or (retry_if is not None and not retry_if(e)):
                        logger.error(
                            f"Non-retryable exception in {func_name}: {type(e).__name__}: {e}"
                        )
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = _backoff_delay(
                        attempt, base_delay, max_delay, exponential_base, jitter
                    )

                    logger.warning(
                        f"Attempt {attempt + 1}/{max_retries} failed for {func_name}: "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        try:
                            on_retry(attempt + 1, e, delay)
                        except Exception as callback_error:
                            logger.error(f"Error in retry callback: {callback_error}")

                    time.sleep(delay)

            raise RuntimeError(f"Unexpected error in retry logic for {func_name}")

        return wrapper
    return decorator


# AWS error codes that indicate a transient condition
RETRYABLE_ERROR_CODES = frozenset({
    "ThrottlingException",
    "Throttling",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "ProvisionedThroughputExceededException",
    "SlowDown",
    "ServiceUnavailable",
    "InternalServerException",
    "InternalError",
    "RequestTimeout",
})


def is_retryable_backend_exception(exception: Exception) -> bool:
    """
    Determine if a query backend exception is retryable

    Checks for common transient errors that should be retried:
    - AWS throttling and rate-limit error codes
    - HTTP 5xx responses
    - Connection and read timeouts

    Args:
        exception: The exception to check

    Returns:
        True if the exception is retryable, False otherwise
    """
    # botocore.exceptions.ClientError carries a structured response
    response = getattr(exception, "response", None)
    if isinstance(response, dict):
        error_code = response.get("Error", {}).get("Code", "")
        if error_code in RETRYABLE_ERROR_CODES:
            return True
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        if isinstance(status, int) and status >= 500:
            return True
        return False

    exception_str = str(exception).lower()
    exception_type = type(exception).__name__.lower()

    retryable_patterns = [
        "connection",
        "timeout",
        "timed out",
        "throttl",
        "rate exceeded",
        "too many requests",
        "connection reset",
        "broken pipe",
        "endpoint connection",
    ]

    for pattern in retryable_patterns:
        if pattern in exception_str or pattern in exception_type:
            return True

    return exception_type in {
        "connectionerror",
        "timeouterror",
        "endpointconnectionerror",
        "connectionclosederror",
        "readtimeouterror",
        "connecttimeouterror",
    }


def retry_backend_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Convenience decorator for query backend calls with smart exception filtering

    Only retries on transient errors (throttling, connection, 5xx).
    Non-retryable errors (invalid query, access denied) fail immediately.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        on_retry: Callback function(attempt, exception, delay) called on each retry

    Example:
        @retry_backend_operation(max_retries=5)
        def get_status(client, execution_id):
            return client.get_query_execution(QueryExecutionId=execution_id)
    """
    return retry_with_backoff(
        max_retries=max_retries,
        base_delay=base_delay,
        retry_if=is_retryable_backend_exception,
        on_retry=on_retry,
    )
