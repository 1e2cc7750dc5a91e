"""Per-source request rate limiter.

Each upstream client owns one limiter. Consecutive calls are spaced at
least ``60 / requests_per_minute`` seconds apart; callers are suspended,
never dropped.
"""

import asyncio
import time

import structlog

log = structlog.get_logger(__name__)


class RateLimiter:
    """Spacing rate limiter tracked via last-call timestamp.

    Safe for concurrent callers via asyncio.Lock.

    Example:
        ```python
        limiter = RateLimiter(requests_per_minute=300)  # 200ms spacing
        await limiter.acquire()  # Waits if necessary to respect rate limit
        response = await client.get(...)
        ```
    """

    def __init__(self, requests_per_minute: int, name: str = "default") -> None:
        """Initialize rate limiter.

        Args:
            requests_per_minute: Allowed request rate.
            name: Label used in log events.

        Raises:
            ValueError: If requests_per_minute is not positive.
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")

        self.name = name
        self.requests_per_minute = requests_per_minute
        self.min_interval = 60.0 / requests_per_minute
        self._last_request_time: float | None = None
        self._lock = asyncio.Lock()

        log.debug(
            "rate_limiter_initialized",
            limiter=name,
            requests_per_minute=requests_per_minute,
            min_interval_ms=int(self.min_interval * 1000),
        )

    async def acquire(self) -> None:
        """Wait until the next request is allowed, then claim the slot."""
        async with self._lock:
            if self._last_request_time is not None:
                time_since_last = time.monotonic() - self._last_request_time

                if time_since_last < self.min_interval:
                    sleep_time = self.min_interval - time_since_last

                    log.debug(
                        "rate_limit_throttling",
                        limiter=self.name,
                        time_since_last_ms=int(time_since_last * 1000),
                        sleep_ms=int(sleep_time * 1000),
                    )

                    await asyncio.sleep(sleep_time)

            self._last_request_time = time.monotonic()
