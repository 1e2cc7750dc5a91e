"""Canonical token record and query models.

All models use Pydantic BaseModel so cached JSON can be validated back
into records at the cache boundary.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Period(str, Enum):
    """Activity window used for filtering and period-aware sorting."""

    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    SEVEN_DAYS = "7d"


class SortBy(str, Enum):
    """Supported sort keys (always descending)."""

    VOLUME = "volume"
    PRICE_CHANGE = "price_change"
    MARKET_CAP = "market_cap"


class UpdateSource(str, Enum):
    """What triggered a refresh cycle whose changes are being published."""

    SCHEDULER = "scheduler"
    MANUAL = "manual"


class TokenRecord(BaseModel):
    """One on-chain token, keyed by its mint address.

    Produced fresh by a normalizer each refresh cycle, possibly merged with
    a record for the same address from another source.

    Attributes:
        address: Solana token mint address (primary key).
        name: Display name.
        ticker: Display symbol.
        price: Price in the ledger's native unit.
        market_cap: Market capitalization.
        liquidity: Pool liquidity.
        volume_1h: 1-hour trading volume (0 when not reported).
        volume_24h: 24-hour trading volume.
        volume_7d: 7-day trading volume (0 when not reported).
        volume: Compatibility alias, always equal to volume_24h.
        tx_count_1h: 1-hour transaction count.
        tx_count_24h: 24-hour transaction count.
        tx_count_7d: 7-day transaction count.
        tx_count: Compatibility alias, always equal to tx_count_24h.
        price_change_1h: 1-hour price change in percent.
        price_change_24h: 24-hour price change in percent, if reported.
        price_change_7d: 7-day price change in percent, if reported.
        source: Contributing source(s), joined with "+" when merged.
        observed_at: Freshness timestamp of the underlying data.
    """

    model_config = ConfigDict(populate_by_name=True)

    address: str = Field(min_length=1)
    name: str
    ticker: str
    price: float = Field(default=0.0, ge=0)
    market_cap: float = Field(default=0.0, ge=0)
    liquidity: float = Field(default=0.0, ge=0)
    volume_1h: float = Field(default=0.0, ge=0)
    volume_24h: float = Field(default=0.0, ge=0)
    volume_7d: float = Field(default=0.0, ge=0)
    volume: float = Field(default=0.0, ge=0)
    tx_count_1h: int = Field(default=0, ge=0)
    tx_count_24h: int = Field(default=0, ge=0)
    tx_count_7d: int = Field(default=0, ge=0)
    tx_count: int = Field(default=0, ge=0)
    price_change_1h: float = 0.0
    price_change_24h: float | None = None
    price_change_7d: float | None = None
    source: str
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _mirror_aliases(self) -> "TokenRecord":
        self.volume = self.volume_24h
        self.tx_count = self.tx_count_24h
        return self


class TokenFilters(BaseModel):
    """Per-request filter specification.

    Attributes:
        period: Activity window, or None for no window filter.
        sort_by: Sort key, or None to keep the default order.
        limit: Maximum records returned, or None for all.
        cursor: Address of the last record the caller has seen.
    """

    period: Period | None = None
    sort_by: SortBy | None = None
    limit: int | None = Field(default=None, ge=1)
    cursor: str | None = None


class TokenPage(BaseModel):
    """A filtered page of records plus pagination metadata."""

    records: list[TokenRecord]
    has_next: bool = False
    next_cursor: str | None = None
