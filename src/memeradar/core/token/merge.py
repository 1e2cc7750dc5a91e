"""Merge engine: reconcile primary and enrichment records for one token."""

from collections.abc import Iterable

import structlog

from memeradar.models.token import TokenRecord

log = structlog.get_logger(__name__)


def merge_records(primary: TokenRecord, secondary: TokenRecord) -> TokenRecord:
    """Combine two records describing the same token.

    Field precedence:
        - price: secondary when it reports a nonzero value, else primary.
        - market_cap, liquidity: the larger of the two.
        - volume_24h, tx_count_24h: summed (sources see disjoint pools);
          the compatibility aliases carry the sums.
        - observed_at: the later timestamp.
        - source: ``primary.source + "+" + secondary.source``.
        - everything else: kept from primary.

    Args:
        primary: Record from the source that defines set membership.
        secondary: Record for the same address from the enrichment source.

    Returns:
        New merged record; inputs are not modified.

    Raises:
        ValueError: If the records describe different addresses.
    """
    if primary.address != secondary.address:
        raise ValueError(
            f"Cannot merge records for different addresses: "
            f"{primary.address} != {secondary.address}"
        )

    volume_24h = primary.volume_24h + secondary.volume_24h
    tx_count_24h = primary.tx_count_24h + secondary.tx_count_24h

    return primary.model_copy(
        update={
            "price": secondary.price if secondary.price > 0 else primary.price,
            "market_cap": max(primary.market_cap, secondary.market_cap),
            "liquidity": max(primary.liquidity, secondary.liquidity),
            "volume_24h": volume_24h,
            "volume": volume_24h,
            "tx_count_24h": tx_count_24h,
            "tx_count": tx_count_24h,
            "observed_at": max(primary.observed_at, secondary.observed_at),
            "source": f"{primary.source}+{secondary.source}",
        }
    )


def merge_record_sets(
    primary: Iterable[TokenRecord],
    secondary: Iterable[TokenRecord],
) -> list[TokenRecord]:
    """Merge two record sets, with the primary set defining membership.

    Primary records with a secondary counterpart are merged; the rest pass
    through unchanged. Secondary-only records are dropped. Primary order is
    preserved.
    """
    lookup = {record.address: record for record in secondary}

    merged: list[TokenRecord] = []
    matched = 0
    for record in primary:
        counterpart = lookup.get(record.address)
        if counterpart is None:
            merged.append(record)
            continue
        merged.append(merge_records(record, counterpart))
        matched += 1

    log.debug(
        "record_sets_merged",
        total=len(merged),
        enriched=matched,
        secondary_count=len(lookup),
    )
    return merged
