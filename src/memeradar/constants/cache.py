"""Cache key scheme and precomputed query shapes."""

from typing import Final

ALL_RECORDS_KEY: Final[str] = "records:all"
RECORD_KEY_PREFIX: Final[str] = "record:"
FILTERED_KEY_PREFIX: Final[str] = "records:"

# (period, sort_by, limit) combinations written on every refresh cycle
PRECOMPUTED_FILTERS: Final[tuple[tuple[str | None, str | None, int | None], ...]] = (
    (None, None, 20),
    (None, "volume", 20),
    ("1h", "volume", 20),
    ("24h", "volume", 20),
    ("7d", "volume", 20),
    (None, "price_change", 10),
    ("24h", "price_change", 20),
    (None, "market_cap", 20),
)
