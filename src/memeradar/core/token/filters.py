"""Filter and sort engine.

Order of operations in ``apply_filters`` is significant:
period filter -> sort -> cursor -> limit.
The dashboard quality gate runs separately, before anything is cached.
"""

from collections.abc import Iterable

from memeradar.constants.token import MIN_DISPLAY_LENGTH, UNKNOWN_TICKER
from memeradar.models.token import Period, SortBy, TokenFilters, TokenPage, TokenRecord


def passes_dashboard_gate(record: TokenRecord) -> bool:
    """Check display fields and require both 24h volume and liquidity."""
    if not record.address or not record.name or not record.ticker:
        return False

    if (
        record.ticker == UNKNOWN_TICKER
        or len(record.address) < MIN_DISPLAY_LENGTH
        or len(record.name) < MIN_DISPLAY_LENGTH
        or len(record.ticker) < MIN_DISPLAY_LENGTH
    ):
        return False

    return record.volume_24h > 0 and record.liquidity > 0


def dashboard_filter(records: Iterable[TokenRecord]) -> list[TokenRecord]:
    """Apply the quality gate and order by 24h volume, highest first."""
    kept = [record for record in records if passes_dashboard_gate(record)]
    return sorted(kept, key=lambda r: r.volume_24h, reverse=True)


def has_activity(record: TokenRecord, period: Period) -> bool:
    """Whether a record shows any volume or transactions in the window."""
    if period is Period.ONE_HOUR:
        return record.volume_1h > 0 or record.tx_count_1h > 0
    if period is Period.SEVEN_DAYS:
        return record.volume_7d > 0 or record.tx_count_7d > 0
    return record.volume_24h > 0 or record.tx_count_24h > 0


def volume_for(record: TokenRecord, period: Period | None) -> float:
    """Volume field matching the period; 24h when no period is given."""
    if period is Period.ONE_HOUR:
        return record.volume_1h
    if period is Period.SEVEN_DAYS:
        return record.volume_7d
    return record.volume_24h


def price_change_for(record: TokenRecord, period: Period | None) -> float:
    """Price change field matching the period; 1h when no period is given."""
    if period is Period.ONE_DAY:
        return record.price_change_24h or 0.0
    if period is Period.SEVEN_DAYS:
        return record.price_change_7d or 0.0
    return record.price_change_1h


def sort_records(
    records: list[TokenRecord],
    sort_by: SortBy,
    period: Period | None = None,
) -> list[TokenRecord]:
    """Sort descending by the requested key.

    Stable: records with equal keys keep their relative order.
    ``market_cap`` ignores the period.
    """
    if sort_by is SortBy.VOLUME:
        return sorted(records, key=lambda r: volume_for(r, period), reverse=True)
    if sort_by is SortBy.PRICE_CHANGE:
        return sorted(records, key=lambda r: price_change_for(r, period), reverse=True)
    return sorted(records, key=lambda r: r.market_cap, reverse=True)


def apply_cursor(records: list[TokenRecord], cursor: str) -> list[TokenRecord]:
    """Keep only records strictly after the cursor address.

    An unknown cursor drops nothing.
    """
    for index, record in enumerate(records):
        if record.address == cursor:
            return records[index + 1 :]
    return records


def apply_filters(
    records: Iterable[TokenRecord],
    filters: TokenFilters | None = None,
) -> list[TokenRecord]:
    """Apply period, sort, cursor and limit to a record set.

    Args:
        records: Records in their current (typically dashboard) order.
        filters: Filter specification; None returns the records unchanged.

    Returns:
        New list; the input is not modified.
    """
    result = list(records)
    if filters is None:
        return result

    if filters.period is not None:
        result = [record for record in result if has_activity(record, filters.period)]

    if filters.sort_by is not None:
        result = sort_records(result, filters.sort_by, filters.period)

    if filters.cursor:
        result = apply_cursor(result, filters.cursor)

    if filters.limit is not None and filters.limit > 0:
        result = result[: filters.limit]

    return result


def build_page(records: list[TokenRecord], limit: int | None) -> TokenPage:
    """Wrap filtered records with pagination metadata.

    ``has_next`` is true when the page is exactly ``limit`` long. It is a
    heuristic, not a lookahead: a final page of exactly ``limit`` records
    still reports ``has_next``.
    """
    return TokenPage(
        records=records,
        has_next=limit is not None and len(records) == limit,
        next_cursor=records[-1].address if records else None,
    )
