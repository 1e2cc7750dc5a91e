"""Pydantic models for DexScreener API responses.

Numeric fields are typed loosely: DexScreener sends some as strings
(``priceNative``, ``priceUsd``) and omits others for thin pairs. Coercion
to numbers happens in the normalizer.

API Documentation: https://docs.dexscreener.com/api/reference
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BaseTokenInfo(BaseModel):
    """Base token information within a trading pair.

    Attributes:
        address: Token contract/mint address.
        name: Token name.
        symbol: Token ticker symbol.
    """

    address: str
    name: str | None = None
    symbol: str | None = None


class LiquidityInfo(BaseModel):
    """Liquidity information.

    Attributes:
        usd: Total liquidity in USD.
        base: Liquidity in base token.
        quote: Liquidity in quote token.
    """

    usd: Any = None
    base: Any = None
    quote: Any = None


class TokenPair(BaseModel):
    """Trading pair from the search or token endpoints.

    Windowed fields (``txns``, ``volume``, ``price_change``) are keyed by
    window name: ``m5``, ``h1``, ``h6``, ``h24``, ``d7``. Window values are
    left untyped so one null or odd-shaped window never rejects the pair.

    Attributes:
        chain_id: Blockchain identifier.
        dex_id: DEX identifier (e.g., "raydium", "orca").
        pair_address: Trading pair contract address.
        base_token: Base token information.
        price_native: Price in the chain's native unit (string).
        price_usd: Price in USD (string).
        txns: Transaction counts per window.
        volume: Trading volume per window.
        price_change: Price change percentage per window.
        liquidity: Liquidity information.
        market_cap: Market capitalization in USD.
    """

    model_config = ConfigDict(populate_by_name=True)

    chain_id: str | None = Field(default=None, alias="chainId")
    dex_id: str | None = Field(default=None, alias="dexId")
    pair_address: str | None = Field(default=None, alias="pairAddress")
    base_token: BaseTokenInfo = Field(alias="baseToken")
    price_native: Any = Field(default=None, alias="priceNative")
    price_usd: Any = Field(default=None, alias="priceUsd")
    txns: dict[str, Any] | None = None
    volume: dict[str, Any] | None = None
    price_change: dict[str, Any] | None = Field(default=None, alias="priceChange")
    liquidity: LiquidityInfo | None = None
    market_cap: Any = Field(default=None, alias="marketCap")


class PairsResponse(BaseModel):
    """Envelope shared by the search and token endpoints.

    Attributes:
        pairs: Trading pairs, or None when nothing matched.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_version: str | None = Field(default=None, alias="schemaVersion")
    pairs: list[dict[str, Any]] | None = None
