"""Bounded retry helper used around index, embedding and task calls."""

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel

from shared.logging.logging_setup import ColorLogger

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Retry policy with a fixed attempt ceiling and multiplicative backoff.

    Attributes:
        max_attempts:  Total number of attempts, including the first one.
        initial_delay: Delay in seconds before the second attempt.
        factor:        Multiplier applied to the delay after each failed attempt.
        max_delay:     Upper bound for a single delay in seconds (None = unbounded).
        min_delay:     Lower bound for a single delay in seconds.
        randomize:     Scale each delay by a random factor in [1, 2) before bounding.
    """

    max_attempts: int = 3
    initial_delay: float = 2.0
    factor: float = 2.0
    max_delay: float | None = None
    min_delay: float = 0.0
    randomize: bool = False

    def get_delay(self, failed_attempt: int) -> float:
        """Delay before the next attempt, given the 1-based number of the attempt that just failed."""
        delay = self.initial_delay * (self.factor ** (failed_attempt - 1))
        if self.randomize:
            delay *= 1 + random.random()
        delay = max(delay, self.min_delay)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


# used around single index mutations and searches
INDEX_RETRY_POLICY = RetryPolicy(max_attempts=3, initial_delay=2.0, factor=2.0)

# outer policy for one background embedding task per document
TASK_RETRY_POLICY = RetryPolicy(
    max_attempts=3, initial_delay=5.0, factor=1.8, min_delay=5.0, max_delay=30.0, randomize=True
)


async def do_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    logger: ColorLogger,
    label: str = "operation",
) -> T:
    """Run an async operation, retrying on any exception until the policy's attempt ceiling is reached.

    Args:
        operation (Callable[[], Awaitable[T]]): Zero-argument coroutine factory; called once per attempt.
        policy (RetryPolicy): Attempt ceiling and backoff.
        logger (ColorLogger): Logger for attempt failures.
        label (str): Human-readable name for log lines.

    Returns:
        T: Whatever the operation returns on its first successful attempt.

    Raises:
        Exception: The last exception once all attempts are exhausted.
    """
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt >= attempts:
                logger.error("%s failed after %d attempt(s): %s", label, attempt, e)
                raise
            delay = policy.get_delay(attempt)
            logger.warning(
                "%s failed on attempt %d/%d: %s. Retrying in %.1fs...",
                label, attempt, attempts, e, delay,
            )
            await asyncio.sleep(delay)
    # unreachable, the loop either returns or raises
    raise RuntimeError(f"{label}: retry loop exited without result")
