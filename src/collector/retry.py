"""
Retry with Exponential Backoff

Generic async retry combinator. The operation is passed in as a zero-argument
callable returning an awaitable, so the same policy wraps SERP lookups in the
batch scheduler and in single-keyword reverification.

Delay before attempt n+1:
    delay = min(initial_delay * exponential_base ** (n - 1), max_delay)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 5.0
    exponential_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given 1-based failed attempt."""
        return min(self.initial_delay * self.exponential_base ** (attempt - 1), self.max_delay)

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        return cls(
            max_attempts=settings.MAX_RETRY_ATTEMPTS,
            initial_delay=settings.RETRY_BASE_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
        )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    give_up_on: Tuple[Type[BaseException], ...] = (),
    label: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or attempts are exhausted.

    Args:
        operation: Zero-argument callable producing an awaitable
        config: Retry configuration (defaults: 3 attempts, 1s base, 5s cap)
        retry_on: Exception types that trigger another attempt
        give_up_on: Exception types re-raised immediately, even if they
            also match ``retry_on``
        label: Name used in log messages

    Returns:
        The operation's result

    Raises:
        The last exception once all attempts fail
    """
    config = config or RetryConfig()
    attempts = max(1, config.max_attempts)
    last_exception = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()

        except give_up_on:
            raise

        except retry_on as e:
            last_exception = e

            if attempt < attempts:
                delay = config.delay_for(attempt)
                logger.warning(
                    f"{label} failed (attempt {attempt}/{attempts}): {e}. "
                    f"Retrying in {delay}s..."
                )
                if delay > 0:
                    await asyncio.sleep(delay)
            else:
                logger.warning(f"{label} failed (attempt {attempt}/{attempts}): {e}. Giving up.")

    raise last_exception
