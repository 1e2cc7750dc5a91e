"""Token aggregation constants."""

from typing import Final

# Primary source search terms, each fetched as an independent query
SEARCH_QUERIES: Final[tuple[str, ...]] = (
    "meme",
    "pepe",
    "doge",
    "shib",
    "bonk",
    "floki",
    "wojak",
    "moon",
    "hodl",
)

# API timeouts
DEXSCREENER_TIMEOUT_SECONDS: Final[float] = 10.0
GECKOTERMINAL_TIMEOUT_SECONDS: Final[float] = 15.0

# GeckoTerminal multi-token endpoint accepts at most 30 addresses per call
GECKOTERMINAL_BATCH_SIZE: Final[int] = 30
SOLANA_CHAIN_ID: Final[str] = "solana"
GECKOTERMINAL_NETWORK: Final[str] = SOLANA_CHAIN_ID
# Enrichment source backs off harder than the primary
GECKOTERMINAL_BASE_DELAY_SECONDS: Final[float] = 2.0

RETRY_MAX_DELAY_SECONDS: Final[float] = 30.0

# Source tags
DEXSCREENER_SOURCE: Final[str] = "DexScreener"
GECKOTERMINAL_SOURCE: Final[str] = "GeckoTerminal"

# Dashboard quality gate
MIN_DISPLAY_LENGTH: Final[int] = 2
UNKNOWN_TICKER: Final[str] = "Unknown"

# Change detection: relative floor shared by every field
CHANGE_RELATIVE_THRESHOLD: Final[float] = 0.001
PRICE_ABSOLUTE_EPSILON: Final[float] = 1e-12
PRICE_CHANGE_PCT_THRESHOLD: Final[float] = 0.1
VOLUME_24H_ABSOLUTE_FLOOR: Final[float] = 1.0
VOLUME_1H_ABSOLUTE_FLOOR: Final[float] = 0.1
MARKET_CAP_ABSOLUTE_FLOOR: Final[float] = 1.0
TX_COUNT_ABSOLUTE_FLOOR: Final[float] = 0.1

# Request limits
DEFAULT_LIST_LIMIT: Final[int] = 20
MAX_LIST_LIMIT: Final[int] = 100
DEFAULT_TRENDING_LIMIT: Final[int] = 10
DEFAULT_VOLUME_LIMIT: Final[int] = 20
MAX_SPECIALIZED_LIMIT: Final[int] = 50
