"""DexScreener pair payload -> canonical token records."""

from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from memeradar.config.logging import short_address
from memeradar.constants.token import DEXSCREENER_SOURCE, SOLANA_CHAIN_ID
from memeradar.core.exceptions import MalformedRecordError
from memeradar.core.token.numbers import to_float, to_non_negative, to_txn_count
from memeradar.models.token import TokenRecord
from memeradar.services.dexscreener.models import PairsResponse, TokenPair

log = structlog.get_logger(__name__)


def _window_txns(pair: TokenPair, window: str) -> int:
    return to_txn_count((pair.txns or {}).get(window))


class DexScreenerNormalizer:
    """Maps DexScreener pairs to TokenRecord.

    A token usually trades in several pairs; the first pair seen for an
    address wins (DexScreener returns pairs ordered by relevance).
    """

    source = DEXSCREENER_SOURCE

    def normalize(self, payload: Any) -> list[TokenRecord]:
        """Normalize a search/token response or a bare list of pairs.

        Malformed entries are dropped individually.
        """
        pairs = self._extract_pairs(payload)
        observed_at = datetime.now(UTC)

        records: list[TokenRecord] = []
        seen: set[str] = set()
        dropped = 0
        for raw in pairs:
            try:
                pair = self.parse_pair(raw)
            except MalformedRecordError as e:
                dropped += 1
                log.debug("dexscreener_pair_dropped", reason=str(e))
                continue

            if pair.chain_id is not None and pair.chain_id != SOLANA_CHAIN_ID:
                continue

            try:
                record = self.to_record(pair, observed_at)
            except MalformedRecordError as e:
                dropped += 1
                log.debug(
                    "dexscreener_pair_dropped",
                    address=short_address(pair.base_token.address),
                    reason=str(e),
                )
                continue

            if record.address in seen:
                continue
            seen.add(record.address)
            records.append(record)

        log.debug(
            "dexscreener_normalized",
            pairs=len(pairs),
            records=len(records),
            dropped=dropped,
        )
        return records

    def parse_pair(self, raw: Any) -> TokenPair:
        """Shape-check one raw pair.

        Raises:
            MalformedRecordError: If the entry does not look like a pair.
        """
        try:
            return TokenPair.model_validate(raw)
        except PydanticValidationError as e:
            raise MalformedRecordError(
                f"invalid pair shape: {e.error_count()} errors", source=self.source
            ) from e

    def to_record(self, pair: TokenPair, observed_at: datetime) -> TokenRecord:
        """Build a canonical record from a shape-checked pair.

        Raises:
            MalformedRecordError: If identity fields or the price are missing.
        """
        address = pair.base_token.address.strip()
        name = (pair.base_token.name or "").strip()
        ticker = (pair.base_token.symbol or "").strip()
        if not address or not name or not ticker:
            raise MalformedRecordError("missing address, name or symbol", source=self.source)
        if pair.price_native in (None, ""):
            raise MalformedRecordError("missing priceNative", source=self.source)

        volume = pair.volume or {}
        price_change = pair.price_change or {}
        return TokenRecord(
            address=address,
            name=name,
            ticker=ticker,
            price=to_non_negative(pair.price_native),
            market_cap=to_non_negative(pair.market_cap),
            liquidity=to_non_negative(pair.liquidity.usd if pair.liquidity else None),
            volume_1h=to_non_negative(volume.get("h1")),
            volume_24h=to_non_negative(volume.get("h24")),
            volume_7d=to_non_negative(volume.get("d7")),
            tx_count_1h=_window_txns(pair, "h1"),
            tx_count_24h=_window_txns(pair, "h24"),
            tx_count_7d=_window_txns(pair, "d7"),
            price_change_1h=to_float(price_change.get("h1")),
            price_change_24h=to_float(price_change.get("h24")),
            price_change_7d=to_float(price_change.get("d7")),
            source=self.source,
            observed_at=observed_at,
        )

    @staticmethod
    def _extract_pairs(payload: Any) -> list[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            try:
                return PairsResponse.model_validate(payload).pairs or []
            except PydanticValidationError as e:
                log.warning("dexscreener_payload_unexpected_format", error=str(e))
                return []
        log.warning("dexscreener_payload_unexpected_format", data_type=type(payload).__name__)
        return []
