"""Change detector.

Compares a new record set against the prior cycle's snapshot and returns
the records whose movement is large enough to be worth pushing to
subscribers.

Every numeric threshold is ``max(prior * relative, absolute_floor)`` so a
zero or near-zero prior value still needs a real move to trip. Price-change
percentages are compared in absolute percentage points.

Failure policy: any error while reading the prior snapshot or comparing
records marks the whole new set as changed. Over-notifying is preferred to
silently serving stale data.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from memeradar.config.logging import short_address
from memeradar.constants.token import (
    CHANGE_RELATIVE_THRESHOLD,
    MARKET_CAP_ABSOLUTE_FLOOR,
    PRICE_ABSOLUTE_EPSILON,
    PRICE_CHANGE_PCT_THRESHOLD,
    TX_COUNT_ABSOLUTE_FLOOR,
    VOLUME_1H_ABSOLUTE_FLOOR,
    VOLUME_24H_ABSOLUTE_FLOOR,
)
from memeradar.models.token import TokenRecord

log = structlog.get_logger(__name__)

PriorRecord = TokenRecord | Mapping[str, Any]


@dataclass(frozen=True)
class ChangeThresholds:
    """Threshold table used by the detector.

    Attributes:
        relative: Fraction of the prior value a field must move by.
        price_epsilon: Absolute floor for price moves.
        price_change_pct: Percentage-point floor for 1h/24h price change.
        volume_24h_floor: Absolute floor for 24h volume.
        volume_1h_floor: Absolute floor for 1h volume.
        market_cap_floor: Absolute floor for market cap.
        tx_count_floor: Absolute floor for 1h/24h transaction counts.
    """

    relative: float = CHANGE_RELATIVE_THRESHOLD
    price_epsilon: float = PRICE_ABSOLUTE_EPSILON
    price_change_pct: float = PRICE_CHANGE_PCT_THRESHOLD
    volume_24h_floor: float = VOLUME_24H_ABSOLUTE_FLOOR
    volume_1h_floor: float = VOLUME_1H_ABSOLUTE_FLOOR
    market_cap_floor: float = MARKET_CAP_ABSOLUTE_FLOOR
    tx_count_floor: float = TX_COUNT_ABSOLUTE_FLOOR


DEFAULT_THRESHOLDS = ChangeThresholds()


def _moved(new: float, prior: float, relative: float, floor: float) -> bool:
    return abs(new - prior) > max(prior * relative, floor)


def changed_fields(
    new: TokenRecord,
    prior: TokenRecord,
    thresholds: ChangeThresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    """Names of the fields whose movement trips a threshold.

    Args:
        new: Record from the current cycle.
        prior: Record for the same address from the previous cycle.
        thresholds: Threshold table.

    Returns:
        Field names in check order; empty when nothing moved enough.
    """
    rel = thresholds.relative
    tripped: list[str] = []

    if _moved(new.price, prior.price, rel, thresholds.price_epsilon):
        tripped.append("price")
    if abs(new.price_change_1h - prior.price_change_1h) > thresholds.price_change_pct:
        tripped.append("price_change_1h")
    if (
        abs((new.price_change_24h or 0.0) - (prior.price_change_24h or 0.0))
        > thresholds.price_change_pct
    ):
        tripped.append("price_change_24h")

    if _moved(new.volume_24h, prior.volume_24h, rel, thresholds.volume_24h_floor):
        tripped.append("volume_24h")
    if _moved(new.volume_1h, prior.volume_1h, rel, thresholds.volume_1h_floor):
        tripped.append("volume_1h")

    if _moved(new.market_cap, prior.market_cap, rel, thresholds.market_cap_floor):
        tripped.append("market_cap")

    if _moved(new.tx_count_24h, prior.tx_count_24h, rel, thresholds.tx_count_floor):
        tripped.append("tx_count_24h")
    if _moved(new.tx_count_1h, prior.tx_count_1h, rel, thresholds.tx_count_floor):
        tripped.append("tx_count_1h")

    return tripped


def _index_prior(prior_records: Iterable[PriorRecord]) -> dict[str, TokenRecord]:
    lookup: dict[str, TokenRecord] = {}
    for item in prior_records:
        record = item if isinstance(item, TokenRecord) else TokenRecord.model_validate(item)
        lookup[record.address] = record
    return lookup


def detect_changes(
    new_records: Sequence[TokenRecord],
    prior_records: Iterable[PriorRecord] | None,
    thresholds: ChangeThresholds = DEFAULT_THRESHOLDS,
) -> list[TokenRecord]:
    """Return the subset of new records that changed since the prior cycle.

    Args:
        new_records: Records from the current cycle.
        prior_records: Previous snapshot as records or raw cached dicts;
            None means there is no prior state.
        thresholds: Threshold table.

    Returns:
        Changed records in their original order. Records without a prior
        counterpart are always included. If the prior snapshot cannot be
        read, all new records are returned.
    """
    if prior_records is None:
        log.info("change_detection_no_prior_state", total=len(new_records))
        return list(new_records)

    try:
        prior_lookup = _index_prior(prior_records)

        changed: list[TokenRecord] = []
        new_listings = 0
        for record in new_records:
            prior = prior_lookup.get(record.address)
            if prior is None:
                new_listings += 1
                changed.append(record)
                continue

            tripped = changed_fields(record, prior, thresholds)
            if tripped:
                log.debug(
                    "token_changed",
                    token=short_address(record.address),
                    fields=tripped,
                )
                changed.append(record)

    except Exception as e:
        log.warning(
            "change_detection_failed_open",
            error=str(e),
            total=len(new_records),
        )
        return list(new_records)

    log.info(
        "change_detection_completed",
        total=len(new_records),
        changed=len(changed),
        new_listings=new_listings,
    )
    return changed
