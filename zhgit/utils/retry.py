"""Retry utilities for handling transient failures.

Provides a higher-order function that wraps an async operation with bounded,
strictly sequential retries and a fixed delay between attempts. Whether a
failure is retried is decided by a predicate consulted after every failed
attempt.

Key Exports:
    with_retry: Wrap an async callable with retry logic.
    is_retryable_error: Default predicate matching transient network failures.

Example:
    >>> from zhgit.utils.retry import with_retry
    >>>
    >>> fetch = with_retry(runner.run, max_attempts=3, delay=2.0)
    >>> await fetch(["fetch", "origin", "dev"])
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import structlog

from zhgit.exceptions import CommandError, ZhgitError

log = structlog.get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

RetryDecision = Callable[[BaseException], bool]

# Lower-cased fragments of messages produced by git, OpenSSL, urllib3 and the
# GitHub API for transient conditions
RETRYABLE_PATTERNS = (
    "timeout",
    "timed out",
    "etimedout",
    "enotfound",
    "econnrefused",
    "econnreset",
    "could not resolve host",
    "failed to resolve",
    "name or service not known",
    "temporary failure in name resolution",
    "connection refused",
    "connection reset",
    "connection aborted",
    "socket hang up",
    "rate limit",
)


def is_retryable_error(error: BaseException) -> bool:
    """Decide whether a failure is a transient network condition.

    Typed errors are judged by kind; anything else by its message. Merge
    conflicts, validation failures and authentication problems are never
    retried.

    Args:
        error: The failure raised by the last attempt

    Returns:
        True if the operation should be attempted again
    """
    if isinstance(error, ZhgitError) and error.kind.is_network:
        return True

    if isinstance(error, CommandError):
        # Match on git output without the ref names it echoes back
        message = error.diagnostic_output.lower()
    else:
        message = str(error).lower()

    return any(pattern in message for pattern in RETRYABLE_PATTERNS)


def with_retry(
    operation: Callable[P, Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay: float = 1.0,
    should_retry: RetryDecision = is_retryable_error,
) -> Callable[P, Awaitable[T]]:
    """Wrap an async operation with bounded retry logic.

    The returned callable attempts the operation up to ``max_attempts`` times.
    After a failure it propagates the error immediately when ``should_retry``
    rejects it or the attempts are used up; otherwise it sleeps for ``delay``
    seconds and tries again. Attempts never overlap.

    Args:
        operation: Async callable to wrap
        max_attempts: Maximum number of calls to ``operation``; at least 1
        delay: Seconds to wait between attempts
        should_retry: Predicate consulted with each failure

    Returns:
        Async callable with the same signature as ``operation``

    Raises:
        ValueError: If max_attempts is smaller than 1

    Example:
        >>> push = with_retry(runner.run, max_attempts=3, delay=2.0)
        >>> await push(["push", "-u", "origin", "feature"])
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    name = getattr(operation, "__qualname__", repr(operation))

    @functools.wraps(operation)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        attempt = 1
        while True:
            try:
                return await operation(*args, **kwargs)
            except Exception as e:
                if not should_retry(e):
                    raise

                if attempt >= max_attempts:
                    log.error(
                        "retry_exhausted",
                        operation=name,
                        attempts=attempt,
                        error=str(e),
                    )
                    raise

                log.warning(
                    "retry_attempt",
                    operation=name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)
                attempt += 1

    return wrapper
