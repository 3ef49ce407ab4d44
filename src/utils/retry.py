"""
Bounded exponential backoff for calls to rate-limited external APIs.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry schedule: delay before attempt n+1 is
    min(base_delay * multiplier ** (n - 1), max_delay) plus up to `jitter` seconds.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.5

    def delay_for(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay += random.uniform(0, self.jitter)
        return delay


class RetryExhaustedError(Exception):
    """All attempts failed with retryable errors."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    should_retry: Callable[[BaseException], bool],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: Optional[str] = None,
) -> T:
    """
    Await `fn()` until it succeeds, a non-retryable error is raised, or the
    attempts run out.

    Non-retryable errors propagate unchanged. When every attempt fails with a
    retryable error, RetryExhaustedError is raised from the last one.
    """
    name = label or getattr(fn, "__name__", "call")
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await fn()
        except Exception as e:
            if not should_retry(e):
                raise
            if attempt >= policy.max_attempts:
                logger.error("%s failed on final attempt %s/%s: %s", name, attempt, policy.max_attempts, e)
                raise RetryExhaustedError(attempt, e) from e
            backoff = policy.delay_for(attempt)
            logger.warning(
                "%s failed on attempt %s/%s (%s). Retrying in %.2fs...",
                name,
                attempt,
                policy.max_attempts,
                type(e).__name__,
                backoff,
            )
            await sleep(backoff)
    raise AssertionError("unreachable")  # pragma: no cover
