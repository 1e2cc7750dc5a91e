"""Token record cache repository.

Key scheme:
    records:all                          full set from the latest cycle
    record:{address}                     one record (lookup + change baseline)
    records:{period}:{sortBy}:{limit}    precomputed filter combinations
"""

from collections.abc import Iterable
from typing import Any

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from memeradar.constants.cache import (
    ALL_RECORDS_KEY,
    FILTERED_KEY_PREFIX,
    PRECOMPUTED_FILTERS,
    RECORD_KEY_PREFIX,
)
from memeradar.data.cache.client import RedisCache
from memeradar.models.token import Period, SortBy, TokenFilters, TokenRecord

log = structlog.get_logger(__name__)

_RECORD_LIST = TypeAdapter(list[TokenRecord])


def record_key(address: str) -> str:
    """Cache key for a single record."""
    return f"{RECORD_KEY_PREFIX}{address}"


def filtered_key(filters: TokenFilters | None) -> str:
    """Cache key for a filter combination; cursor is not part of the key."""
    if filters is None:
        return ALL_RECORDS_KEY
    period = filters.period.value if filters.period else "all"
    sort_by = filters.sort_by.value if filters.sort_by else "default"
    limit = filters.limit if filters.limit else "all"
    return f"{FILTERED_KEY_PREFIX}{period}:{sort_by}:{limit}"


def precomputed_filters() -> list[TokenFilters]:
    """Filter combinations written on every refresh cycle."""
    return [
        TokenFilters(
            period=Period(period) if period else None,
            sort_by=SortBy(sort_by) if sort_by else None,
            limit=limit,
        )
        for period, sort_by, limit in PRECOMPUTED_FILTERS
    ]


def _dump(records: Iterable[TokenRecord]) -> list[dict[str, Any]]:
    return [record.model_dump(mode="json") for record in records]


class TokenCacheRepository:
    """Typed access to cached token records.

    Attributes:
        cache: Underlying JSON cache.
    """

    def __init__(self, cache: RedisCache) -> None:
        self.cache = cache

    async def get_all_raw(self) -> list[Any] | None:
        """Full set exactly as cached, without validation."""
        value = await self.cache.get_json(ALL_RECORDS_KEY)
        if value is None:
            return None
        if not isinstance(value, list):
            log.warning("cached_set_not_a_list", key=ALL_RECORDS_KEY)
            return None
        return value

    async def get_all(self) -> list[TokenRecord] | None:
        """Full set from the latest cycle; None when absent or malformed."""
        return self._validate_list(ALL_RECORDS_KEY, await self.cache.get_json(ALL_RECORDS_KEY))

    async def set_all(self, records: list[TokenRecord]) -> bool:
        return await self.cache.set_json(ALL_RECORDS_KEY, _dump(records))

    async def get_record(self, address: str) -> TokenRecord | None:
        value = await self.cache.get_json(record_key(address))
        if value is None:
            return None
        try:
            return TokenRecord.model_validate(value)
        except PydanticValidationError as e:
            log.warning("cached_record_malformed", key=record_key(address), error=str(e))
            return None

    async def get_records_raw(self, addresses: list[str]) -> list[Any]:
        """Per-address snapshots that are present, as cached."""
        values = await self.cache.get_many_json([record_key(a) for a in addresses])
        return [value for value in values if value is not None]

    async def set_record(self, record: TokenRecord) -> bool:
        return await self.cache.set_json(record_key(record.address), record.model_dump(mode="json"))

    async def set_records(self, records: list[TokenRecord]) -> bool:
        """Write every record under its own key in one pipeline."""
        items = {record_key(r.address): r.model_dump(mode="json") for r in records}
        return await self.cache.set_many_json(items)

    async def get_filtered(self, filters: TokenFilters) -> list[TokenRecord] | None:
        key = filtered_key(filters)
        return self._validate_list(key, await self.cache.get_json(key))

    async def set_filtered(self, filters: TokenFilters, records: list[TokenRecord]) -> bool:
        return await self.cache.set_json(filtered_key(filters), _dump(records))

    @staticmethod
    def _validate_list(key: str, value: Any) -> list[TokenRecord] | None:
        if value is None:
            return None
        try:
            return _RECORD_LIST.validate_python(value)
        except PydanticValidationError as e:
            log.warning("cached_set_malformed", key=key, error=str(e))
            return None
