"""Bounded retry decorator for GitHub API calls.

Rate limits, server errors (5xx) and transport failures are retried with
exponential backoff. Rate limit waits honor the ``retry-after`` and
``x-ratelimit-reset`` headers. Any other error is raised immediately, and
the last error is raised once the retry budget is spent.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Callable, Mapping, TypeVar

import structlog
from githubkit.exception import (
    PrimaryRateLimitExceeded,
    RequestError,
    RequestFailed,
    RequestTimeout,
    SecondaryRateLimitExceeded,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 32.0
DEFAULT_EXPONENTIAL_BASE = 2.0


def is_rate_limit_failure(error: RequestFailed) -> bool:
    """Return True when a failed response represents a GitHub rate limit."""
    status_code = error.response.status_code
    if status_code == 429:
        return True
    if status_code != 403:
        return False
    remaining = error.response.headers.get("x-ratelimit-remaining")
    return remaining == "0" or "rate limit" in str(error).lower()


def is_server_failure(error: RequestFailed) -> bool:
    """Return True for 5xx responses, which are treated as transient."""
    return error.response.status_code >= 500


def wait_time_from_headers(headers: Mapping[str, str], fallback: float) -> float:
    """Derive the wait before the next attempt from rate limit headers.

    ``retry-after`` wins over ``x-ratelimit-reset``. Unparseable values are
    ignored and the fallback backoff delay is used instead.
    """
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
            return fallback

    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            reset_timestamp = int(rate_limit_reset)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
            return fallback
        current_timestamp = int(time.time())
        if reset_timestamp > current_timestamp:
            return float(reset_timestamp - current_timestamp + 1)

    return fallback


def retry_on_rate_limit(
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    exponential_base: float = DEFAULT_EXPONENTIAL_BASE,
) -> Callable[[F], F]:
    """Decorator retrying async GitHub calls on rate limits and transient errors.

    Args:
        max_retries: Maximum number of retry attempts after the first call.
        initial_delay: Delay in seconds before the first retry.
        max_delay: Upper bound for any single wait, in seconds.
        exponential_base: Multiplier applied to the delay after each retry.

    Returns:
        Decorated function with retry logic.

    Example:
        @retry_on_rate_limit()
        async def get_issue(number: int):
            return await github_client.get_issue(number)
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded) as e:
                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for GitHub rate limit error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error_type=type(e).__name__,
                        )
                        raise
                    if e.retry_after:
                        wait_time = min(e.retry_after.total_seconds(), max_delay)
                    else:
                        wait_time = min(delay, max_delay)
                    reason = "primary_rate_limit" if isinstance(e, PrimaryRateLimitExceeded) else "secondary_rate_limit"
                except RequestFailed as e:
                    rate_limited = is_rate_limit_failure(e)
                    if not (rate_limited or is_server_failure(e)):
                        raise
                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for failed GitHub request",
                            function=func.__name__,
                            attempt=attempt + 1,
                            status_code=e.response.status_code,
                        )
                        raise
                    if rate_limited:
                        wait_time = min(wait_time_from_headers(e.response.headers, delay), max_delay)
                        reason = "rate_limit"
                    else:
                        wait_time = min(delay, max_delay)
                        reason = f"http_{e.response.status_code}"
                except (RequestError, RequestTimeout) as e:
                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for GitHub transport error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error_type=type(e).__name__,
                        )
                        raise
                    wait_time = min(delay, max_delay)
                    reason = "transport"

                logger.warning(
                    "Retrying GitHub call",
                    function=func.__name__,
                    reason=reason,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    wait_time=wait_time,
                )
                await asyncio.sleep(wait_time)
                delay = min(delay * exponential_base, max_delay)

            raise AssertionError("unreachable")  # pragma: no cover

        return async_wrapper  # type: ignore

    return decorator
