"""Tests for DexScreenerNormalizer."""

import pytest

from memeradar.core.exceptions import MalformedRecordError
from memeradar.core.token.filters import apply_filters
from memeradar.models.token import Period, TokenFilters
from memeradar.services.dexscreener.normalizer import DexScreenerNormalizer
from tests.factories.token import dexscreener_pair, generate_valid_solana_address


@pytest.fixture
def normalizer() -> DexScreenerNormalizer:
    return DexScreenerNormalizer()


@pytest.fixture
def address() -> str:
    return generate_valid_solana_address()


class TestFieldMapping:
    """Tests for pair -> record field mapping."""

    def test_maps_full_pair(self, normalizer, address) -> None:
        records = normalizer.normalize({"pairs": [dexscreener_pair(address)]})

        assert len(records) == 1
        record = records[0]
        assert record.address == address
        assert record.name == "Bonk"
        assert record.ticker == "BONK"
        assert record.price == pytest.approx(0.0000001)
        assert record.market_cap == 500000
        assert record.liquidity == 20000
        assert record.volume_1h == 50
        assert record.volume_24h == 1000
        assert record.volume == 1000
        assert record.tx_count_1h == 15
        assert record.tx_count_24h == 500
        assert record.tx_count == 500
        assert record.price_change_1h == 1.5
        assert record.price_change_24h == -3.2
        assert record.source == "DexScreener"

    def test_numeric_strings_are_coerced(self, normalizer, address) -> None:
        pair = dexscreener_pair(address, volume_h24="1234.5", liquidity_usd="99", market_cap="10")

        record = normalizer.normalize([pair])[0]

        assert record.volume_24h == 1234.5
        assert record.liquidity == 99
        assert record.market_cap == 10

    def test_missing_optional_fields_default_to_zero(self, normalizer, address) -> None:
        pair = dexscreener_pair(address, market_cap=None)
        for key in ("txns", "volume", "priceChange", "liquidity"):
            pair.pop(key)

        record = normalizer.normalize([pair])[0]

        assert record.market_cap == 0
        assert record.liquidity == 0
        assert record.volume_24h == 0
        assert record.tx_count_24h == 0
        assert record.price_change_1h == 0.0
        assert record.price_change_24h == 0.0

    def test_name_and_symbol_are_trimmed(self, normalizer, address) -> None:
        record = normalizer.normalize([dexscreener_pair(address, name="  Bonk ", symbol=" BONK")])[0]

        assert record.name == "Bonk"
        assert record.ticker == "BONK"

    def test_maps_weekly_windows(self, normalizer, address) -> None:
        pair = dexscreener_pair(
            address,
            volume={"h24": 1000, "h1": 50, "d7": "700"},
            txns={"h24": {"buys": 3, "sells": 2}, "d7": {"buys": 50, "sells": "50"}},
            priceChange={"h24": 1, "d7": "-12.5"},
        )

        record = normalizer.normalize([pair])[0]

        assert record.volume_7d == 700
        assert record.tx_count_7d == 100
        assert record.price_change_7d == -12.5

    def test_weekly_period_keeps_record_with_weekly_activity(self, normalizer, address) -> None:
        pair = dexscreener_pair(
            address,
            volume={"h24": 1000, "d7": 700},
            txns={"d7": {"buys": 50, "sells": 50}},
        )
        records = normalizer.normalize([pair])

        kept = apply_filters(records, TokenFilters(period=Period.SEVEN_DAYS))

        assert [r.address for r in kept] == [address]


class TestLenientWindows:
    """Odd-shaped optional fields degrade to 0 instead of dropping the pair."""

    def test_null_txn_window(self, normalizer, address) -> None:
        pair = dexscreener_pair(
            address, txns={"m5": None, "h1": "junk", "h24": {"buys": 7, "sells": 3}}
        )

        records = normalizer.normalize({"pairs": [pair]})

        assert len(records) == 1
        assert records[0].tx_count_1h == 0
        assert records[0].tx_count_24h == 10

    @pytest.mark.parametrize("created_at", ["1700000000000.5", None, {"ms": 1}])
    def test_unparseable_pair_created_at_ignored(self, normalizer, address, created_at) -> None:
        pair = dexscreener_pair(address, pairCreatedAt=created_at)

        assert [r.address for r in normalizer.normalize([pair])] == [address]

    def test_null_volume_and_price_change_windows(self, normalizer, address) -> None:
        pair = dexscreener_pair(
            address,
            volume={"h24": None, "h1": 5},
            priceChange={"h1": None, "h24": "n/a"},
        )

        record = normalizer.normalize([pair])[0]

        assert record.volume_24h == 0
        assert record.volume_1h == 5
        assert record.price_change_1h == 0.0
        assert record.price_change_24h == 0.0


class TestDropping:
    """Tests for entries that must not produce records."""

    @pytest.mark.parametrize("price_native", [None, ""])
    def test_missing_native_price_dropped(self, normalizer, address, price_native) -> None:
        pair = dexscreener_pair(address, price_native=price_native)

        assert normalizer.normalize([pair]) == []

    @pytest.mark.parametrize("field", ["name", "symbol"])
    def test_missing_identity_dropped(self, normalizer, address, field) -> None:
        pair = dexscreener_pair(address)
        pair["baseToken"][field] = None

        assert normalizer.normalize([pair]) == []

    def test_malformed_entry_does_not_drop_siblings(self, normalizer, address) -> None:
        good = dexscreener_pair(address)
        no_base = dexscreener_pair(generate_valid_solana_address())
        no_base.pop("baseToken")

        records = normalizer.normalize([no_base, "garbage", good])

        assert [r.address for r in records] == [address]

    def test_other_chains_skipped(self, normalizer, address) -> None:
        pair = dexscreener_pair(address, chain_id="ethereum")

        assert normalizer.normalize([pair]) == []

    def test_first_pair_per_address_wins(self, normalizer, address) -> None:
        first = dexscreener_pair(address, volume_h24=10)
        second = dexscreener_pair(address, volume_h24=9999)

        records = normalizer.normalize([first, second])

        assert len(records) == 1
        assert records[0].volume_24h == 10

    def test_parse_pair_raises_for_bad_shape(self, normalizer) -> None:
        with pytest.raises(MalformedRecordError):
            normalizer.parse_pair({"pairAddress": "x"})


class TestPayloadShapes:
    """Tests for accepted payload envelopes."""

    def test_null_pairs(self, normalizer) -> None:
        assert normalizer.normalize({"schemaVersion": "1.0.0", "pairs": None}) == []

    @pytest.mark.parametrize("payload", [None, "oops", 42])
    def test_unexpected_payload(self, normalizer, payload) -> None:
        assert normalizer.normalize(payload) == []
