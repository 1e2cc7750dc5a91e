"""DexScreener API client for the primary token feed.

This module provides a client for the DexScreener search and token
endpoints. Responses are returned raw; ``DexScreenerNormalizer`` owns the
mapping to canonical records.

API Documentation: https://docs.dexscreener.com/api/reference
Rate Limits: ~300 requests/minute (no auth required)
"""

from typing import Any

import structlog

from memeradar.config.logging import short_address
from memeradar.config.settings import Settings, get_settings
from memeradar.constants.token import DEXSCREENER_TIMEOUT_SECONDS, RETRY_MAX_DELAY_SECONDS
from memeradar.core.exceptions import UpstreamFetchError
from memeradar.services.base import BaseAPIClient
from memeradar.services.rate_limiter import RateLimiter
from memeradar.services.retry import RetryPolicy

log = structlog.get_logger(__name__)


class DexScreenerClient(BaseAPIClient):
    """DexScreener API client.

    Endpoints used:
        - GET /search?q={query} - Pairs matching a search term
        - GET /tokens/{address} - Pairs for one token

    Example:
        client = DexScreenerClient()
        try:
            payload = await client.search_pairs("bonk")
        finally:
            await client.close()
    """

    SERVICE_NAME = "dexscreener"
    error_class = UpstreamFetchError

    def __init__(
        self,
        settings: Settings | None = None,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize DexScreener client from settings.

        Args:
            settings: Application settings (default: get_settings()).
            rate_limiter: Override the per-client limiter.
            retry_policy: Override the retry policy.
        """
        settings = settings or get_settings()
        super().__init__(
            base_url=settings.dexscreener_base_url,
            service_name=self.SERVICE_NAME,
            timeout=DEXSCREENER_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
            rate_limiter=rate_limiter
            or RateLimiter(settings.dexscreener_rate_limit_per_minute, name=self.SERVICE_NAME),
            retry_policy=retry_policy
            or RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                base_delay=settings.retry_base_delay_seconds,
                multiplier=settings.retry_backoff_multiplier,
                max_delay=RETRY_MAX_DELAY_SECONDS,
            ),
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_cooldown=settings.circuit_breaker_cooldown,
        )
        log.info("dexscreener_client_initialized", base_url=self.base_url)

    async def search_pairs(self, query: str) -> Any:
        """Search pairs by free-text term.

        Args:
            query: Search term (e.g. "bonk").

        Returns:
            Decoded JSON response (``{"pairs": [...]}``).

        Raises:
            UpstreamFetchError: If the request fails after retries.
            CircuitBreakerOpenError: If the circuit is open.
        """
        log.debug("dexscreener_search", query=query)
        response = await self.get("/search", params={"q": query})
        return self._decode(response)

    async def fetch_token_pairs(self, address: str) -> Any:
        """Fetch all pairs for one token address.

        Raises:
            UpstreamFetchError: If the request fails after retries.
        """
        log.debug("dexscreener_fetch_token", address=short_address(address))
        response = await self.get(f"/tokens/{address}")
        return self._decode(response)

    def _decode(self, response: Any) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                service=self.service_name,
                message=f"Response is not JSON: {e}",
                status_code=response.status_code,
            ) from e
