"""GeckoTerminal API client for token enrichment.

The multi-token endpoint accepts up to 30 comma-separated addresses per
call. Enrichment is best effort: a batch that fails after retries is
logged and skipped, so callers always get a (possibly empty) list.

API Documentation: https://www.geckoterminal.com/dex-api
Rate Limits: 30 requests/minute (public API)
"""

from typing import Any

import structlog

from memeradar.config.settings import Settings, get_settings
from memeradar.constants.token import (
    GECKOTERMINAL_BASE_DELAY_SECONDS,
    GECKOTERMINAL_BATCH_SIZE,
    GECKOTERMINAL_NETWORK,
    GECKOTERMINAL_TIMEOUT_SECONDS,
    RETRY_MAX_DELAY_SECONDS,
)
from memeradar.core.exceptions import (
    CircuitBreakerOpenError,
    ExternalServiceError,
    UpstreamEnrichError,
)
from memeradar.services.base import BaseAPIClient
from memeradar.services.rate_limiter import RateLimiter
from memeradar.services.retry import RetryPolicy

log = structlog.get_logger(__name__)


def chunked(items: list[str], size: int) -> list[list[str]]:
    """Split a list into consecutive batches of at most ``size`` items."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class GeckoTerminalClient(BaseAPIClient):
    """GeckoTerminal API client.

    Endpoints used:
        - GET /networks/{network}/tokens/multi/{addresses} - Batch token data

    Example:
        client = GeckoTerminalClient()
        try:
            entities = await client.fetch_tokens(addresses)
        finally:
            await client.close()
    """

    SERVICE_NAME = "geckoterminal"
    error_class = UpstreamEnrichError

    def __init__(
        self,
        settings: Settings | None = None,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        batch_size: int = GECKOTERMINAL_BATCH_SIZE,
    ) -> None:
        settings = settings or get_settings()
        super().__init__(
            base_url=settings.geckoterminal_base_url,
            service_name=self.SERVICE_NAME,
            timeout=GECKOTERMINAL_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
            rate_limiter=rate_limiter
            or RateLimiter(settings.geckoterminal_rate_limit_per_minute, name=self.SERVICE_NAME),
            retry_policy=retry_policy
            or RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                base_delay=GECKOTERMINAL_BASE_DELAY_SECONDS,
                multiplier=settings.retry_backoff_multiplier,
                max_delay=RETRY_MAX_DELAY_SECONDS,
            ),
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_cooldown=settings.circuit_breaker_cooldown,
        )
        self.batch_size = batch_size
        log.info("geckoterminal_client_initialized", base_url=self.base_url)

    async def fetch_batch(self, addresses: list[str]) -> list[Any]:
        """Fetch token entities for one batch of addresses.

        Raises:
            UpstreamEnrichError: If the request fails after retries.
            CircuitBreakerOpenError: If the circuit is open.
        """
        path = f"/networks/{GECKOTERMINAL_NETWORK}/tokens/multi/{','.join(addresses)}"
        response = await self.get(path)
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamEnrichError(
                service=self.service_name,
                message=f"Response is not JSON: {e}",
                status_code=response.status_code,
            ) from e

        entities = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entities, list):
            log.warning("geckoterminal_unexpected_format", data_type=type(data).__name__)
            return []
        return entities

    async def fetch_tokens(self, addresses: list[str]) -> list[Any]:
        """Fetch token entities for any number of addresses.

        Batches are fetched sequentially (the limiter spaces them anyway).

        Returns:
            Raw entities from every batch that succeeded.
        """
        entities: list[Any] = []
        batches = chunked(addresses, self.batch_size)
        failed = 0
        for index, batch in enumerate(batches):
            try:
                entities.extend(await self.fetch_batch(batch))
            except (ExternalServiceError, CircuitBreakerOpenError) as e:
                failed += 1
                log.warning(
                    "geckoterminal_batch_failed",
                    batch=index,
                    batch_size=len(batch),
                    error=str(e),
                )

        log.info(
            "geckoterminal_tokens_fetched",
            requested=len(addresses),
            batches=len(batches),
            failed_batches=failed,
            entities=len(entities),
        )
        return entities
