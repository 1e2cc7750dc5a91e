"""Base API client with rate limiting, retry and circuit breaker.

This module provides:
- CircuitState enum for circuit breaker states
- CircuitBreaker dataclass for tracking consecutive upstream failures
- BaseAPIClient class for making resilient, rate-limited HTTP requests
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

import httpx
import structlog

from memeradar.core.exceptions import CircuitBreakerOpenError, ExternalServiceError
from memeradar.services.rate_limiter import RateLimiter
from memeradar.services.retry import RetryableError, RetryPolicy

log = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation, requests allowed
    OPEN = "open"  # Circuit tripped, requests blocked
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreaker:
    """Opens after a run of consecutive failures, half-opens after a cooldown.

    Attributes:
        failure_threshold: Consecutive failures before opening.
        cooldown_seconds: Seconds to wait before allowing a test request.
        failure_count: Current consecutive failure count.
        last_failure_time: Timestamp of most recent failure.
        state: Current circuit state.
    """

    failure_threshold: int = 5
    cooldown_seconds: int = 30
    failure_count: int = field(default=0, init=False)
    last_failure_time: datetime | None = field(default=None, init=False)
    state: CircuitState = field(default=CircuitState.CLOSED, init=False)

    def record_success(self) -> None:
        """Reset the failure count and close the circuit."""
        if self.state != CircuitState.CLOSED:
            log.info("circuit_breaker_closed", previous_state=self.state.value)
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Count a failure; open the circuit at the threshold.

        A failure while half-open reopens immediately.
        """
        self.failure_count += 1
        self.last_failure_time = datetime.now(UTC)

        if self.state == CircuitState.HALF_OPEN:
            self.state = CircuitState.OPEN
            log.warning("circuit_breaker_reopened", failure_count=self.failure_count)
        elif self.failure_count >= self.failure_threshold:
            if self.state != CircuitState.OPEN:
                log.warning(
                    "circuit_breaker_opened",
                    failure_count=self.failure_count,
                    threshold=self.failure_threshold,
                )
            self.state = CircuitState.OPEN

    def can_execute(self) -> bool:
        """Whether a request may go out now.

        An open circuit whose cooldown has elapsed moves to half-open and
        lets one test request through.
        """
        if self.state != CircuitState.OPEN:
            return True

        if self.last_failure_time is None:
            return False

        elapsed = datetime.now(UTC) - self.last_failure_time
        if elapsed > timedelta(seconds=self.cooldown_seconds):
            self.state = CircuitState.HALF_OPEN
            log.info("circuit_breaker_half_open", cooldown_elapsed=elapsed.total_seconds())
            return True
        return False

    def raise_if_open(self, service: str) -> None:
        """Raise if the circuit is open and not ready for a test request.

        Raises:
            CircuitBreakerOpenError: If circuit is open and cooldown not elapsed.
        """
        if not self.can_execute():
            raise CircuitBreakerOpenError(
                f"{service}: circuit breaker is open, next test request in "
                f"{self._time_until_half_open():.1f} seconds"
            )

    def _time_until_half_open(self) -> float:
        if self.last_failure_time is None:
            return 0.0
        elapsed = datetime.now(UTC) - self.last_failure_time
        return max(0.0, self.cooldown_seconds - elapsed.total_seconds())


class BaseAPIClient:
    """Base API client for upstream data sources.

    Every request goes through:
    - the circuit breaker (fail fast while the upstream is down)
    - the rate limiter (applied before every attempt, including retries)
    - the retry policy (429 / 5xx / timeouts / connection errors)

    Non-429 4xx responses are not retried. Exhausted retries raise
    ``error_class``, which subclasses narrow to the source's error type.

    Example:
        client = BaseAPIClient(
            base_url="https://api.example.com",
            service_name="example",
            rate_limiter=RateLimiter(requests_per_minute=60),
        )
        response = await client.get("/endpoint")
        await client.close()
    """

    error_class: type[ExternalServiceError] = ExternalServiceError

    def __init__(
        self,
        base_url: str,
        service_name: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        """Initialize BaseAPIClient.

        Args:
            base_url: Base URL for all requests.
            service_name: Name used in errors and log events.
            timeout: Request timeout in seconds (default: 30).
            headers: Default headers for all requests.
            rate_limiter: Limiter awaited before every attempt (optional).
            retry_policy: Retry policy (default: 3 attempts, 1s doubling).
            circuit_breaker_threshold: Failures before circuit opens (default: 5).
            circuit_breaker_cooldown: Seconds before half-open (default: 30).
        """
        self.base_url = base_url
        self.service_name = service_name
        self.timeout = timeout
        self.headers = headers or {}
        self.rate_limiter = rate_limiter
        self.retry_policy = retry_policy or RetryPolicy()
        self._client: httpx.AsyncClient | None = None
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=circuit_breaker_threshold,
            cooldown_seconds=circuit_breaker_cooldown,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
            )
            log.debug("httpx_client_created", service=self.service_name)
        return self._client

    async def close(self) -> None:
        """Close the httpx client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("httpx_client_closed", service=self.service_name)

    async def _send_once(
        self, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        """Single rate-limited attempt; classifies failures for the retry policy."""
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code

            # 4xx errors (except 429) - no retry, fail immediately
            if 400 <= status_code < 500 and status_code != 429:
                log.warning(
                    "request_client_error",
                    service=self.service_name,
                    method=method,
                    path=path,
                    status_code=status_code,
                )
                raise self.error_class(
                    service=self.service_name,
                    message=str(e),
                    status_code=status_code,
                ) from e

            self._circuit_breaker.record_failure()
            raise RetryableError(str(e), status_code=status_code) from e

        except httpx.RequestError as e:
            self._circuit_breaker.record_failure()
            raise RetryableError(f"{type(e).__name__}: {e}") from e

        self._circuit_breaker.record_success()
        return response

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request through breaker, limiter and retry policy.

        Raises:
            CircuitBreakerOpenError: If circuit breaker is open.
            ExternalServiceError: (``error_class``) on non-retryable client
                errors or when retries are exhausted.
        """
        self._circuit_breaker.raise_if_open(self.service_name)

        async def attempt() -> httpx.Response:
            return await self._send_once(method, path, **kwargs)

        try:
            return await self.retry_policy.run(attempt, name=f"{self.service_name} {method} {path}")
        except RetryableError as e:
            log.error(
                "request_max_retries_exceeded",
                service=self.service_name,
                method=method,
                path=path,
                max_attempts=self.retry_policy.max_attempts,
            )
            raise self.error_class(
                service=self.service_name,
                message=f"Max retries ({self.retry_policy.max_attempts}) exceeded: {e}",
                status_code=e.status_code,
            ) from e

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return await self._request("GET", path, **kwargs)
