"""
Retry Controller - Exponential backoff for rate-limited calls.

Only rate-limit failures are retried. A failure counts as rate-limited when
its text carries an HTTP 429 marker or ``RESOURCE_EXHAUSTED``; everything
else propagates on the first attempt, unchanged.

Attempts are strictly sequential and the caller is suspended for each
backoff wait.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from tablescribe.config.errors import RateLimitedError

from .models import RetryPolicy

logger = logging.getLogger(__name__)

__all__ = ["RATE_LIMIT_MARKERS", "RetryController", "is_rate_limited"]

T = TypeVar("T")

RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED")


def is_rate_limited(error: BaseException) -> bool:
    """Check whether an error signals throttling by the remote service."""
    if isinstance(error, RateLimitedError):
        return True
    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class RetryController:
    """
    Retry a zero-argument coroutine function on rate-limit failures.

    Example:
        >>> controller = RetryController(RetryPolicy(max_attempts=4))
        >>> tables = await controller.run(lambda: extractor.extract(page))
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize controller.

        Args:
            policy: Backoff schedule. Uses defaults if None.
            sleep: Awaitable sleep used between attempts
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def _wait_strategy(self):
        # 2**i * base, plus bounded jitter
        return wait_exponential(
            multiplier=self.policy.base_seconds,
            exp_base=2,
            max=self.policy.max_wait_seconds,
        ) + wait_random(0, self.policy.jitter_seconds)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute the operation, retrying while it is rate limited.

        Args:
            operation: Zero-argument coroutine function

        Returns:
            The operation's result

        Raises:
            RateLimitedError: Every attempt was rate limited
            Exception: Any non-rate-limit failure, as raised by the operation
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception(is_rate_limited),
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self._wait_strategy(),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

        try:
            return await retrying(operation)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            attempts = e.last_attempt.attempt_number
            raise RateLimitedError(
                f"Rate limit retries exhausted after {attempts} attempts: {last_error}",
                details={"attempts": attempts, "last_error": str(last_error)},
            ) from last_error
