"""Tests for the change detector."""

import pytest

from memeradar.core.token.change_detector import (
    ChangeThresholds,
    changed_fields,
    detect_changes,
)
from tests.factories.token import TokenRecordFactory


@pytest.fixture
def prior():
    return TokenRecordFactory(
        price=1.0,
        price_change_1h=2.0,
        price_change_24h=5.0,
        volume_1h=100.0,
        volume_24h=10_000.0,
        market_cap=50_000.0,
        tx_count_1h=10,
        tx_count_24h=1_000,
    )


class TestChangedFields:
    """Tests for per-field thresholds."""

    def test_identical_record_has_no_changes(self, prior) -> None:
        assert changed_fields(prior.model_copy(), prior) == []

    def test_price_move_above_threshold_flags(self, prior) -> None:
        new = prior.model_copy(update={"price": 1.002})

        assert changed_fields(new, prior) == ["price"]

    def test_price_move_below_threshold_ignored(self, prior) -> None:
        new = prior.model_copy(update={"price": 1.0005})

        assert changed_fields(new, prior) == []

    def test_price_from_zero_uses_epsilon(self, prior) -> None:
        zero = prior.model_copy(update={"price": 0.0})
        new = prior.model_copy(update={"price": 1e-9})

        assert "price" in changed_fields(new, zero)

    def test_price_change_pct_compares_percentage_points(self, prior) -> None:
        small = prior.model_copy(update={"price_change_1h": 2.05})
        large = prior.model_copy(update={"price_change_1h": 2.2, "price_change_24h": 4.8})

        assert changed_fields(small, prior) == []
        assert changed_fields(large, prior) == ["price_change_1h", "price_change_24h"]

    def test_missing_24h_price_change_treated_as_zero(self, prior) -> None:
        new = prior.model_copy(update={"price_change_24h": None})

        assert changed_fields(new, prior) == ["price_change_24h"]

    def test_volume_floors_apply_for_small_priors(self, prior) -> None:
        quiet = prior.model_copy(update={"volume_24h": 0.0, "volume_1h": 0.0})
        tiny_move = quiet.model_copy(update={"volume_24h": 0.9, "volume_1h": 0.05})
        real_move = quiet.model_copy(update={"volume_24h": 1.5, "volume_1h": 0.2})

        assert changed_fields(tiny_move, quiet) == []
        assert changed_fields(real_move, quiet) == ["volume_24h", "volume_1h"]

    def test_market_cap_relative_threshold(self, prior) -> None:
        below = prior.model_copy(update={"market_cap": 50_040.0})
        above = prior.model_copy(update={"market_cap": 50_060.0})

        assert changed_fields(below, prior) == []
        assert changed_fields(above, prior) == ["market_cap"]

    def test_tx_count_changes(self, prior) -> None:
        new = prior.model_copy(update={"tx_count_24h": 1_002, "tx_count_1h": 11})

        assert changed_fields(new, prior) == ["tx_count_24h", "tx_count_1h"]

    def test_custom_thresholds(self, prior) -> None:
        loose = ChangeThresholds(relative=0.05)
        new = prior.model_copy(update={"price": 1.02})

        assert changed_fields(new, prior, loose) == []


class TestDetectChanges:
    """Tests for detect_changes over record sets."""

    def test_no_prior_state_returns_everything(self, token_factory) -> None:
        records = token_factory.build_batch(3)

        assert detect_changes(records, None) == records

    def test_new_address_is_always_changed(self, prior, token_factory) -> None:
        newcomer = token_factory()
        unchanged = prior.model_copy()

        assert detect_changes([unchanged, newcomer], [prior]) == [newcomer]

    def test_only_moved_records_returned_in_order(self, prior, token_factory) -> None:
        other = token_factory()
        moved = prior.model_copy(update={"price": 2.0})

        assert detect_changes([other.model_copy(), moved], [prior, other]) == [moved]

    def test_accepts_raw_cached_dicts(self, prior) -> None:
        raw_prior = [prior.model_dump(mode="json")]
        moved = prior.model_copy(update={"market_cap": 99_999.0})

        assert detect_changes([moved], raw_prior) == [moved]

    def test_malformed_prior_fails_open(self, prior, token_factory) -> None:
        records = [prior.model_copy(), token_factory()]

        assert detect_changes(records, [{"address": prior.address, "price": "n/a"}]) == records
