"""GeckoTerminal token payload -> canonical token records."""

from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from memeradar.constants.token import GECKOTERMINAL_NETWORK, GECKOTERMINAL_SOURCE
from memeradar.core.exceptions import MalformedRecordError
from memeradar.core.token.numbers import to_float, to_non_negative, to_txn_count
from memeradar.models.token import TokenRecord
from memeradar.services.geckoterminal.models import (
    TokenAttributes,
    TokenEntity,
    TokensResponse,
)

log = structlog.get_logger(__name__)

_ID_PREFIX = f"{GECKOTERMINAL_NETWORK}_"


def _window_txns(attrs: TokenAttributes, window: str) -> int:
    return to_txn_count((attrs.transactions or {}).get(window))


class GeckoTerminalNormalizer:
    """Maps GeckoTerminal token entities to TokenRecord."""

    source = GECKOTERMINAL_SOURCE

    def normalize(self, payload: Any) -> list[TokenRecord]:
        """Normalize a multi-token response or a bare list of entities."""
        entities = self._extract_entities(payload)
        observed_at = datetime.now(UTC)

        records: list[TokenRecord] = []
        dropped = 0
        for raw in entities:
            try:
                records.append(self.to_record(raw, observed_at))
            except MalformedRecordError as e:
                dropped += 1
                log.debug("geckoterminal_entity_dropped", reason=str(e))

        log.debug(
            "geckoterminal_normalized",
            entities=len(entities),
            records=len(records),
            dropped=dropped,
        )
        return records

    def to_record(self, raw: Any, observed_at: datetime) -> TokenRecord:
        """Build a canonical record from one raw entity.

        Raises:
            MalformedRecordError: If the shape is wrong, identity fields are
                missing, or no price is reported.
        """
        try:
            entity = TokenEntity.model_validate(raw)
        except PydanticValidationError as e:
            raise MalformedRecordError(
                f"invalid entity shape: {e.error_count()} errors", source=self.source
            ) from e

        attrs = entity.attributes
        address = (attrs.address or entity.id.removeprefix(_ID_PREFIX)).strip()
        name = (attrs.name or "").strip()
        ticker = (attrs.symbol or "").strip()
        if not address or not name or not ticker:
            raise MalformedRecordError("missing address, name or symbol", source=self.source)
        if attrs.price_usd in (None, ""):
            raise MalformedRecordError("missing price_usd", source=self.source)

        volume = attrs.volume_usd or {}
        price_change = attrs.price_change_percentage or {}
        reserve = attrs.total_reserve_in_usd
        if reserve is None:
            reserve = attrs.reserve_in_usd

        return TokenRecord(
            address=address,
            name=name,
            ticker=ticker,
            price=to_non_negative(attrs.price_usd),
            market_cap=to_non_negative(attrs.market_cap_usd),
            liquidity=to_non_negative(reserve),
            volume_1h=to_non_negative(volume.get("h1")),
            volume_24h=to_non_negative(volume.get("h24")),
            tx_count_1h=_window_txns(attrs, "h1"),
            tx_count_24h=_window_txns(attrs, "h24"),
            price_change_1h=to_float(price_change.get("h1")),
            price_change_24h=to_float(price_change.get("h24")),
            source=self.source,
            observed_at=observed_at,
        )

    @staticmethod
    def _extract_entities(payload: Any) -> list[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            try:
                return TokensResponse.model_validate(payload).data or []
            except PydanticValidationError as e:
                log.warning("geckoterminal_payload_unexpected_format", error=str(e))
                return []
        log.warning("geckoterminal_payload_unexpected_format", data_type=type(payload).__name__)
        return []
