"""Pydantic models for GeckoTerminal API responses.

GeckoTerminal follows JSON:API: entities carry an ``id`` such as
``solana_<address>`` and an ``attributes`` object. Numbers arrive as
strings or null; the normalizer coerces them.

API Documentation: https://www.geckoterminal.com/dex-api
"""

from typing import Any

from pydantic import BaseModel


class TokenAttributes(BaseModel):
    """Attributes of a token entity.

    Attributes:
        address: Token mint address.
        name: Token name.
        symbol: Token ticker symbol.
        price_usd: Price in USD.
        market_cap_usd: Market capitalization in USD (often null).
        fdv_usd: Fully diluted valuation in USD.
        total_reserve_in_usd: Liquidity across all pools.
        volume_usd: Volume per window (``h24`` at minimum).
        transactions: Buy/sell counts per window, when reported.
        price_change_percentage: Price change per window, when reported.
    """

    address: str | None = None
    name: str | None = None
    symbol: str | None = None
    price_usd: Any = None
    market_cap_usd: Any = None
    fdv_usd: Any = None
    total_reserve_in_usd: Any = None
    reserve_in_usd: Any = None
    volume_usd: dict[str, Any] | None = None
    transactions: dict[str, Any] | None = None
    price_change_percentage: dict[str, Any] | None = None


class TokenEntity(BaseModel):
    """One token entity from the multi-token endpoint."""

    id: str
    type: str | None = None
    attributes: TokenAttributes


class TokensResponse(BaseModel):
    """Multi-token response envelope."""

    data: list[dict[str, Any]] | None = None
