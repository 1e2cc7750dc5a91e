"""Retry policy and the generic retry combinator.

The policy is a plain value object so it can be tested on its own and
shared by clients; ``RetryPolicy.run`` drives any async operation through
tenacity using the policy's backoff schedule.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

log = structlog.get_logger(__name__)

T = TypeVar("T")

# HTTP statuses that mean "slow down and try again"
RATE_LIMIT_STATUSES = frozenset({429, 503})


class RetryableError(Exception):
    """A failure worth retrying: rate limiting, 5xx, timeout, or connection error.

    Attributes:
        status_code: HTTP status code if the failure was an HTTP response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        """True for 429 / 503 responses."""
        return self.status_code in RATE_LIMIT_STATUSES


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff retry policy.

    Delay before retry ``n`` (0-based) is
    ``min(base_delay * multiplier ** n, max_delay)``.

    Attributes:
        max_attempts: Total attempts including the first.
        base_delay: Delay in seconds before the first retry.
        multiplier: Growth factor per attempt.
        max_delay: Upper bound for a single delay.
        sleep: Awaitable sleep used between attempts.

    Example:
        policy = RetryPolicy(max_attempts=3, base_delay=1.0, multiplier=2.0)
        policy.backoff(0)  # 1.0
        policy.backoff(2)  # 4.0
        result = await policy.run(fetch_page, name="search")
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.multiplier < 1:
            raise ValueError("base_delay must be >= 0 and multiplier >= 1")

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after the given 0-based failed attempt."""
        return min(self.base_delay * self.multiplier**attempt, self.max_delay)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.backoff(retry_state.attempt_number - 1)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str = "operation",
    ) -> T:
        """Run an async operation, retrying on RetryableError.

        Args:
            operation: Zero-argument coroutine function.
            name: Label used in log events.

        Returns:
            The operation's result.

        Raises:
            RetryableError: The last failure, once attempts are exhausted.
            Exception: Any non-retryable error, immediately.
        """

        def _log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            log.warning(
                "retry_backoff",
                operation=name,
                attempt=retry_state.attempt_number,
                max_attempts=self.max_attempts,
                delay_seconds=delay,
                rate_limited=getattr(error, "is_rate_limited", False),
                error=str(error),
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(RetryableError),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )
        return await retrying(operation)
