"""Bounded retry for external catalog and reference resolution calls.

The validator core never retries; collaborators wrap their network calls in
retry_call()/retry_async() and surface a single final failure.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from addonval.core.config import (
    CATALOG_RETRY_INITIAL_DELAY,
    CATALOG_RETRY_MAX,
    CATALOG_RETRY_MAX_DELAY,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_RETRY_MAX,
    DEFAULT_RETRY_MAX_DELAY,
    REF_RESOLUTION_INITIAL_DELAY,
    REF_RESOLUTION_MAX_RETRIES,
)

logger = logging.getLogger("addonval.retry")

T = TypeVar("T")


class RetryStrategy(str, Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    FIXED = "fixed"


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy.

    Attributes:
        max_retries: Attempts after the first call.
        initial_delay: Delay before the first retry, seconds.
        max_delay: Upper bound for any single delay, seconds.
        strategy: How the delay grows between attempts.
    """
    max_retries: int
    initial_delay: float
    max_delay: float
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        if self.strategy == RetryStrategy.EXPONENTIAL:
            delay = self.initial_delay * (2 ** (attempt - 1))
        elif self.strategy == RetryStrategy.LINEAR:
            delay = self.initial_delay * attempt
        else:
            delay = self.initial_delay
        return min(delay, self.max_delay)


DEFAULT_RETRY = RetryConfig(
    DEFAULT_RETRY_MAX, DEFAULT_RETRY_INITIAL_DELAY, DEFAULT_RETRY_MAX_DELAY,
    RetryStrategy.EXPONENTIAL,
)
# Catalog operations hit eventual-consistency windows after imports
CATALOG_RETRY = RetryConfig(
    CATALOG_RETRY_MAX, CATALOG_RETRY_INITIAL_DELAY, CATALOG_RETRY_MAX_DELAY,
    RetryStrategy.LINEAR,
)
REF_RESOLUTION_RETRY = RetryConfig(
    REF_RESOLUTION_MAX_RETRIES, REF_RESOLUTION_INITIAL_DELAY, DEFAULT_RETRY_MAX_DELAY,
    RetryStrategy.EXPONENTIAL,
)


def retry_call(
    func: Callable[[], T],
    config: RetryConfig = DEFAULT_RETRY,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    operation: str = "call",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call `func` until it succeeds or the retry budget is spent.

    Exceptions outside `retryable` propagate immediately. The last retryable
    exception is re-raised once all attempts fail.
    """
    attempt = 0
    while True:
        try:
            return func()
        except retryable as e:
            attempt += 1
            if attempt > config.max_retries:
                logger.error(f"{operation} failed after {attempt} attempts: {e}")
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                f"{operation} failed (attempt {attempt}/{config.max_retries + 1}), "
                f"retrying in {delay:.1f}s: {e}"
            )
            sleep(delay)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig = DEFAULT_RETRY,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    operation: str = "call",
) -> T:
    """Async variant of retry_call using asyncio.sleep between attempts."""
    attempt = 0
    while True:
        try:
            return await func()
        except retryable as e:
            attempt += 1
            if attempt > config.max_retries:
                logger.error(f"{operation} failed after {attempt} attempts: {e}")
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                f"{operation} failed (attempt {attempt}/{config.max_retries + 1}), "
                f"retrying in {delay:.1f}s: {e}"
            )
            await asyncio.sleep(delay)
