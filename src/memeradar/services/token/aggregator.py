"""Refresh cycle orchestration.

One cycle: read prior snapshot -> fetch primary -> normalize -> enrich and
merge -> dashboard filter -> diff -> write through to cache.

Only a total primary fetch failure aborts a cycle, and the cache is left
as it was. Everything after the primary fetch degrades instead of failing.
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from memeradar.config.logging import short_address
from memeradar.constants.token import SEARCH_QUERIES
from memeradar.core.token.change_detector import (
    DEFAULT_THRESHOLDS,
    ChangeThresholds,
    detect_changes,
)
from memeradar.core.token.filters import apply_filters, dashboard_filter
from memeradar.core.token.merge import merge_record_sets
from memeradar.core.token.validator import filter_valid_addresses
from memeradar.data.cache.token_cache import TokenCacheRepository, precomputed_filters
from memeradar.models.token import TokenRecord
from memeradar.services.dexscreener.client import DexScreenerClient
from memeradar.services.dexscreener.normalizer import DexScreenerNormalizer
from memeradar.services.geckoterminal.client import GeckoTerminalClient
from memeradar.services.geckoterminal.normalizer import GeckoTerminalNormalizer

log = structlog.get_logger(__name__)


class CycleState(str, Enum):
    """Refresh cycle states. FAILED is reachable from FETCHING only."""

    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    MERGING = "merging"
    FILTERING = "filtering"
    DIFFING = "diffing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle.

    Attributes:
        records: Full dashboard set produced by the cycle.
        changed: Subset that moved since the prior snapshot.
        state: Terminal state (DONE or FAILED).
        duration_ms: Wall time of the cycle.
        cache_failures: Number of cache writes that did not succeed.
    """

    records: list[TokenRecord] = field(default_factory=list)
    changed: list[TokenRecord] = field(default_factory=list)
    state: CycleState = CycleState.DONE
    duration_ms: float = 0.0
    cache_failures: int = 0

    @property
    def failed(self) -> bool:
        return self.state == CycleState.FAILED


class TokenAggregator:
    """Drives refresh cycles over the primary and enrichment sources.

    Holds no record state between cycles; the prior snapshot is always read
    back from the cache.
    """

    def __init__(
        self,
        primary: DexScreenerClient,
        secondary: GeckoTerminalClient,
        repository: TokenCacheRepository,
        primary_normalizer: DexScreenerNormalizer | None = None,
        secondary_normalizer: GeckoTerminalNormalizer | None = None,
        queries: Sequence[str] = SEARCH_QUERIES,
        thresholds: ChangeThresholds = DEFAULT_THRESHOLDS,
    ) -> None:
        """Initialize aggregator.

        Args:
            primary: Client for the source that defines set membership.
            secondary: Client for the enrichment source.
            repository: Token cache repository.
            primary_normalizer: Normalizer for primary payloads.
            secondary_normalizer: Normalizer for enrichment payloads.
            queries: Search terms fetched from the primary source.
            thresholds: Change detection thresholds.
        """
        self.primary = primary
        self.secondary = secondary
        self.repository = repository
        self.primary_normalizer = primary_normalizer or DexScreenerNormalizer()
        self.secondary_normalizer = secondary_normalizer or GeckoTerminalNormalizer()
        self.queries = tuple(queries)
        self.thresholds = thresholds

    async def fetch_primary_payloads(self) -> list[Any] | None:
        """Fetch every query variant from the primary source.

        Queries run concurrently; the client's rate limiter spaces the
        actual requests. A failed query is logged and skipped.

        Returns:
            Payloads of the queries that succeeded, in query order, or None
            when every query failed.
        """
        results = await asyncio.gather(
            *(self.primary.search_pairs(query) for query in self.queries),
            return_exceptions=True,
        )

        payloads: list[Any] = []
        for query, result in zip(self.queries, results, strict=True):
            if isinstance(result, BaseException):
                log.warning("primary_query_failed", query=query, error=str(result))
                continue
            payloads.append(result)

        if self.queries and not payloads:
            log.error("primary_fetch_failed", queries=len(self.queries))
            return None
        return payloads

    def normalize_primary(self, payloads: list[Any]) -> list[TokenRecord]:
        """Normalize primary payloads, keeping the first record per address."""
        records: list[TokenRecord] = []
        seen: set[str] = set()
        for payload in payloads:
            for record in self.primary_normalizer.normalize(payload):
                if record.address in seen:
                    continue
                seen.add(record.address)
                records.append(record)
        return records

    async def enrich(self, records: list[TokenRecord]) -> list[TokenRecord]:
        """Merge enrichment data into primary records.

        Only valid addresses are sent to the enrichment source. Any failure
        falls back to the primary records unchanged.
        """
        addresses = filter_valid_addresses([record.address for record in records])
        if not addresses:
            log.debug("enrichment_skipped_no_valid_addresses", total=len(records))
            return list(records)

        try:
            entities = await self.secondary.fetch_tokens(addresses)
            secondary_records = self.secondary_normalizer.normalize(entities)
        except Exception as e:
            log.warning(
                "enrichment_failed_using_primary_only",
                addresses=len(addresses),
                error=str(e),
            )
            return list(records)

        return merge_record_sets(records, secondary_records)

    async def collect(self) -> list[TokenRecord] | None:
        """Fetch, normalize, merge and filter without diffing or persisting.

        Used to serve reads while the cache is empty or unreachable.

        Returns:
            Dashboard records, or None when the primary fetch failed.
        """
        payloads = await self.fetch_primary_payloads()
        if payloads is None:
            return None
        records = self.normalize_primary(payloads)
        if not records:
            return []
        return dashboard_filter(await self.enrich(records))

    async def fetch_single(self, address: str) -> TokenRecord | None:
        """Fetch and enrich one token straight from the sources.

        Raises:
            UpstreamFetchError: If the primary lookup fails after retries.
        """
        payload = await self.primary.fetch_token_pairs(address)
        matches = [r for r in self.primary_normalizer.normalize(payload) if r.address == address]
        if not matches:
            log.info("token_not_found_upstream", token=short_address(address))
            return None

        enriched = await self.enrich(matches[:1])
        return enriched[0]

    async def refresh(self) -> RefreshResult:
        """Run one refresh cycle.

        Returns:
            RefreshResult with the full set and changed subset. A FAILED
            result carries no records and leaves the cache untouched.
        """
        started = time.perf_counter()
        prior = await self.repository.get_all_raw()

        _enter(CycleState.FETCHING)
        log.info("refresh_cycle_started", queries=len(self.queries))
        payloads = await self.fetch_primary_payloads()
        if payloads is None:
            log.error("refresh_cycle_failed", state=CycleState.FAILED.value)
            return RefreshResult(state=CycleState.FAILED, duration_ms=_elapsed_ms(started))

        _enter(CycleState.NORMALIZING)
        records = self.normalize_primary(payloads)
        if not records:
            log.info("refresh_cycle_no_records")
            return RefreshResult(duration_ms=_elapsed_ms(started))

        _enter(CycleState.MERGING)
        merged = await self.enrich(records)

        _enter(CycleState.FILTERING)
        filtered = dashboard_filter(merged)

        _enter(CycleState.DIFFING)
        if prior is None:
            # No full snapshot: fall back to whatever per-record keys survive
            snapshots = await self.repository.get_records_raw([r.address for r in filtered])
            prior = snapshots or None
        changed = detect_changes(filtered, prior, self.thresholds)

        _enter(CycleState.PERSISTING)
        cache_failures = await self.persist(filtered)

        result = RefreshResult(
            records=filtered,
            changed=changed,
            state=CycleState.DONE,
            duration_ms=_elapsed_ms(started),
            cache_failures=cache_failures,
        )
        log.info(
            "refresh_cycle_done",
            fetched=len(records),
            total=len(filtered),
            changed=len(changed),
            cache_failures=cache_failures,
            duration_ms=result.duration_ms,
        )
        return result

    async def persist(self, records: list[TokenRecord]) -> int:
        """Write the full set, per-record keys and precomputed filters.

        Returns:
            Number of writes that failed. Failures never abort the cycle.
        """
        outcomes = [
            await self.repository.set_all(records),
            await self.repository.set_records(records),
        ]
        for filters in precomputed_filters():
            outcomes.append(
                await self.repository.set_filtered(filters, apply_filters(records, filters))
            )

        failures = outcomes.count(False)
        if failures:
            log.warning("cache_write_through_incomplete", failed=failures, attempted=len(outcomes))
        return failures


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


def _enter(state: CycleState) -> None:
    log.debug("refresh_cycle_state", state=state.value)
