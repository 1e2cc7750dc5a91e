"""Token query service.

Request-facing operations: input validation, cache-first reads with a
direct-fetch fallback, single-token lookup, and manual refresh.
"""

from dataclasses import dataclass

import structlog

from memeradar.config.logging import short_address
from memeradar.constants.token import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_TRENDING_LIMIT,
    DEFAULT_VOLUME_LIMIT,
    MAX_LIST_LIMIT,
    MAX_SPECIALIZED_LIMIT,
)
from memeradar.core.exceptions import (
    CircuitBreakerOpenError,
    ExternalServiceError,
    ValidationError,
)
from memeradar.core.token.filters import apply_filters, build_page
from memeradar.core.token.validator import is_valid_token_address
from memeradar.data.cache.token_cache import TokenCacheRepository
from memeradar.models.token import (
    Period,
    SortBy,
    TokenFilters,
    TokenPage,
    TokenRecord,
    UpdateSource,
)
from memeradar.services.realtime.registry import SubscriberRegistry
from memeradar.services.token.aggregator import RefreshResult, TokenAggregator

log = structlog.get_logger(__name__)


def parse_period(value: str | None) -> Period | None:
    """Validate a period query value.

    Raises:
        ValidationError: If the value is not 1h, 24h or 7d.
    """
    if value is None or value == "":
        return None
    try:
        return Period(value)
    except ValueError:
        raise ValidationError("Invalid period. Must be 1h, 24h, or 7d") from None


def parse_sort_by(value: str | None) -> SortBy | None:
    """Validate a sortBy query value.

    Raises:
        ValidationError: If the value is not a supported sort key.
    """
    if value is None or value == "":
        return None
    try:
        return SortBy(value)
    except ValueError:
        raise ValidationError(
            "Invalid sortBy. Must be volume, price_change, or market_cap"
        ) from None


def parse_limit(value: str | int | None, default: int, maximum: int) -> int:
    """Validate a limit query value against an endpoint's bounds.

    Raises:
        ValidationError: If the value is not an integer in [1, maximum].
    """
    if value is None or value == "":
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = 0
    if not 1 <= limit <= maximum:
        raise ValidationError(f"Invalid limit. Must be between 1 and {maximum}")
    return limit


def build_filters(
    period: str | None = None,
    sort_by: str | None = None,
    limit: str | int | None = None,
    cursor: str | None = None,
    default_limit: int = DEFAULT_LIST_LIMIT,
    max_limit: int = MAX_LIST_LIMIT,
) -> TokenFilters:
    """Validate raw query parameters into a TokenFilters.

    Raises:
        ValidationError: On the first invalid parameter.
    """
    return TokenFilters(
        period=parse_period(period),
        sort_by=parse_sort_by(sort_by),
        limit=parse_limit(limit, default_limit, max_limit),
        cursor=cursor or None,
    )


@dataclass
class RefreshOutcome:
    """Refresh cycle result plus what was pushed to subscribers."""

    result: RefreshResult
    source: UpdateSource
    delivered: int = 0

    @property
    def broadcast_summary(self) -> str:
        if not self.result.records:
            return "No updates to broadcast"
        if not self.result.changed:
            return "No significant changes to broadcast"
        return f"{len(self.result.changed)} changed tokens sent to WebSocket clients"


class TokenService:
    """Serves token queries from the cache, falling back to the sources.

    Attributes:
        aggregator: Refresh cycle driver.
        repository: Token cache repository.
        registry: Subscriber registry that receives changed records.
    """

    def __init__(
        self,
        aggregator: TokenAggregator,
        repository: TokenCacheRepository,
        registry: SubscriberRegistry,
    ) -> None:
        self.aggregator = aggregator
        self.repository = repository
        self.registry = registry

    async def list_tokens(self, filters: TokenFilters) -> TokenPage:
        """Filtered, paginated listing.

        Cursor-less requests try the precomputed key for their exact shape
        first. Otherwise the full cached set is filtered on the fly; with no
        cached set at all, records are collected straight from the sources
        without touching the cache.
        """
        if not filters.cursor:
            cached = await self.repository.get_filtered(filters)
            if cached is not None:
                log.debug("token_list_cache_hit", count=len(cached))
                return build_page(cached, filters.limit)

        records = await self.repository.get_all()
        if records is None:
            log.info("token_list_cache_miss_direct_fetch")
            records = await self.aggregator.collect() or []

        return build_page(apply_filters(records, filters), filters.limit)

    async def trending(self, limit: str | int | None = None) -> TokenPage:
        """Top records by price change.

        Raises:
            ValidationError: If limit is outside 1..50.
        """
        filters = TokenFilters(
            sort_by=SortBy.PRICE_CHANGE,
            limit=parse_limit(limit, DEFAULT_TRENDING_LIMIT, MAX_SPECIALIZED_LIMIT),
        )
        return await self.list_tokens(filters)

    async def by_volume(
        self, limit: str | int | None = None, period: str | None = None
    ) -> TokenPage:
        """Top records by volume for a period (24h when absent).

        Raises:
            ValidationError: If limit is outside 1..50 or period is unknown.
        """
        filters = TokenFilters(
            period=parse_period(period),
            sort_by=SortBy.VOLUME,
            limit=parse_limit(limit, DEFAULT_VOLUME_LIMIT, MAX_SPECIALIZED_LIMIT),
        )
        return await self.list_tokens(filters)

    async def get_token(self, address: str) -> TokenRecord | None:
        """Look up one token by address.

        Order: per-record key, cached full set, then a live lookup that is
        written back to the per-record key.

        Raises:
            ValidationError: If the address is malformed.
        """
        if not is_valid_token_address(address):
            raise ValidationError("Invalid token address format")

        record = await self.repository.get_record(address)
        if record is not None:
            return record

        for cached in await self.repository.get_all() or []:
            if cached.address == address:
                return cached

        try:
            record = await self.aggregator.fetch_single(address)
        except (ExternalServiceError, CircuitBreakerOpenError) as e:
            log.warning("token_lookup_failed", token=short_address(address), error=str(e))
            return None

        if record is not None:
            await self.repository.set_record(record)
        return record

    async def refresh(self, source: UpdateSource = UpdateSource.MANUAL) -> RefreshOutcome:
        """Run one refresh cycle and publish its changed records."""
        log.info("token_refresh_requested", source=source.value)
        result = await self.aggregator.refresh()
        delivered = await self.registry.publish_changes(result.changed, source)
        return RefreshOutcome(result=result, source=source, delivered=delivered)

    async def close(self) -> None:
        """Close upstream clients."""
        await self.aggregator.primary.close()
        await self.aggregator.secondary.close()
