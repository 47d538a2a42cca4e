"""KeywordDiscoveryService: runs the keyword discovery pipeline end to end.

Phases, strictly in order (each needs the full output of the previous one):
1. collection      - seeds + expansions, narrow performance fetch, competitors
2. brand_filter    - drop branded queries before paying for enrichment
3. deduplication   - one candidate per canonical key
4. enrichment      - single bulk metadata call, defaults on failure
5. cross_reference - wide performance fetch, matches every candidate
6. scoring         - weighted score, category, stable sort

Failures inside a phase are recorded as ``ItemFailure`` and the run goes on
with partial or defaulted data. A caller only ever sees
``NoUsableSourcesError`` (nothing to collect from) or
``DiscoveryCancelledError`` (cancel event set between phases). Nothing is
persisted here; the caller decides what to keep.

ERROR LOGGING REQUIREMENTS:
- Log phase transitions at INFO level with run_id and counts
- Log per-item failures at WARNING level with phase and item
- Log unavailable sources with the reason
- Add timing logs for phases >1 second
"""

import asyncio
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field

from keyword_discovery.core.config import Settings, get_settings
from keyword_discovery.core.logging import discovery_logger, get_logger
from keyword_discovery.integrations.dataforseo import DataForSEOClient, get_dataforseo
from keyword_discovery.integrations.search_console import (
    SearchConsoleClient,
    get_search_console,
)
from keyword_discovery.services.brand_filter import BrandFilter
from keyword_discovery.services.candidates import (
    KeywordCandidate,
    PriorityCategory,
    SearchIntent,
)
from keyword_discovery.services.cross_reference import PerformanceCrossReferencer
from keyword_discovery.services.deduplicator import deduplicate
from keyword_discovery.services.discovery_errors import (
    ConfigurationError,
    DiscoveryCancelledError,
    ItemFailure,
    NoUsableSourcesError,
)
from keyword_discovery.services.enrichment import EnrichmentBatcher
from keyword_discovery.services.priority_scorer import score_and_sort
from keyword_discovery.services.providers import (
    BrandTerm,
    BrandTermStore,
    BulkMetadataProvider,
    CompetitorRankingProvider,
    DataForSEOMetadataProvider,
    DataForSEORankingProvider,
    DataForSEOSuggestionProvider,
    KeywordSuggestionProvider,
    PerformanceDataProvider,
    SearchConsolePerformanceProvider,
)
from keyword_discovery.services.source_collector import (
    PerformanceQuery,
    SourceCollector,
)

logger = get_logger(__name__)


@dataclass
class DiscoveryRequest:
    """Inputs of one discovery run.

    Attributes:
        seeds: Manual seed keywords
        competitors: Competitor domains
        client_id: Used to load brand terms from the brand term store
        property_id: Search Console property; auto-detected from
            ``client_domain`` when missing
        client_domain: Client website domain for property detection
        date_start: ISO start date of the performance window (default lookback)
        date_end: ISO end date of the performance window (default today)
        brand_terms: Extra brand terms on top of the stored ones
        narrow_limit: Row cap of the early performance fetch
        wide_limit: Row cap of the cross-reference performance fetch
        run_id: Correlation id for logs (generated when missing)
    """

    seeds: list[str] = field(default_factory=list)
    competitors: list[str] = field(default_factory=list)
    client_id: str | None = None
    property_id: str | None = None
    client_domain: str | None = None
    date_start: str | None = None
    date_end: str | None = None
    brand_terms: list[BrandTerm] = field(default_factory=list)
    narrow_limit: int | None = None
    wide_limit: int | None = None
    run_id: str | None = None


@dataclass
class DiscoveryStats:
    """Aggregate counters for a finished run.

    ``quick_wins`` counts volume > 100 with LOW competition and is
    independent of ``priority_category``.
    """

    total: int = 0
    branded_removed: int = 0
    commercial: int = 0
    informational: int = 0
    quick_wins: int = 0
    raw_collected: int = 0
    duplicates_merged: int = 0
    categories: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_candidates(
        cls,
        candidates: list[KeywordCandidate],
        branded_removed: int = 0,
        raw_collected: int = 0,
        duplicates_merged: int = 0,
    ) -> "DiscoveryStats":
        category_counts = Counter(
            c.priority_category.value for c in candidates if c.priority_category
        )
        return cls(
            total=len(candidates),
            branded_removed=branded_removed,
            commercial=sum(
                1 for c in candidates if c.intent == SearchIntent.COMMERCIAL
            ),
            informational=sum(
                1 for c in candidates if c.intent == SearchIntent.INFORMATIONAL
            ),
            quick_wins=sum(1 for c in candidates if c.is_quick_win),
            raw_collected=raw_collected,
            duplicates_merged=duplicates_merged,
            categories={
                category.value: category_counts.get(category.value, 0)
                for category in PriorityCategory
            },
        )


@dataclass
class DiscoveryResult:
    """Scored, sorted candidates plus everything that went wrong."""

    run_id: str
    candidates: list[KeywordCandidate]
    stats: DiscoveryStats
    failures: list[ItemFailure] = field(default_factory=list)
    property_id: str | None = None
    phase_durations_ms: dict[str, float] = field(default_factory=dict)
    duration_ms: float = 0.0

    def failures_for(self, phase: str) -> list[ItemFailure]:
        return [f for f in self.failures if f.phase == phase]


class KeywordDiscoveryService:
    """Runs discovery over whichever providers are configured.

    Any provider may be None; that source then contributes nothing and its
    phase records a ``ConfigurationError``.
    """

    def __init__(
        self,
        suggestion_provider: KeywordSuggestionProvider | None = None,
        ranking_provider: CompetitorRankingProvider | None = None,
        metadata_provider: BulkMetadataProvider | None = None,
        performance_provider: PerformanceDataProvider | None = None,
        brand_term_store: BrandTermStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._suggestions = suggestion_provider
        self._rankings = ranking_provider
        self._metadata = metadata_provider
        self._performance = performance_provider
        self._brand_terms = brand_term_store

        self._collector = SourceCollector(
            suggestion_provider=suggestion_provider,
            ranking_provider=ranking_provider,
            performance_provider=performance_provider,
            suggestions_per_seed=self._settings.discovery_suggestions_per_seed,
            competitor_keyword_limit=self._settings.discovery_competitor_keyword_limit,
            max_concurrent=self._settings.discovery_max_concurrent,
            performance_timeout=self._settings.discovery_narrow_fetch_timeout,
        )
        self._enricher = EnrichmentBatcher(metadata_provider)
        self._cross_referencer = PerformanceCrossReferencer(
            performance_provider,
            timeout=self._settings.discovery_wide_fetch_timeout,
        )

    @classmethod
    def from_clients(
        cls,
        dataforseo: DataForSEOClient | None,
        search_console: SearchConsoleClient | None,
        brand_term_store: BrandTermStore | None = None,
        settings: Settings | None = None,
    ) -> "KeywordDiscoveryService":
        """Wire adapters for every client that has credentials."""
        settings = settings or get_settings()

        suggestion = ranking = metadata = None
        if dataforseo is not None and dataforseo.available:
            suggestion = DataForSEOSuggestionProvider(dataforseo)
            ranking = DataForSEORankingProvider(
                dataforseo, limit=settings.discovery_competitor_keyword_limit
            )
            metadata = DataForSEOMetadataProvider(dataforseo)
        else:
            discovery_logger.source_unavailable(
                "dataforseo", "DataForSEO credentials not configured"
            )

        performance = None
        if search_console is not None and search_console.available:
            performance = SearchConsolePerformanceProvider(search_console)
        else:
            discovery_logger.source_unavailable(
                "search_console", "Search Console access token not configured"
            )

        return cls(
            suggestion_provider=suggestion,
            ranking_provider=ranking,
            metadata_provider=metadata,
            performance_provider=performance,
            brand_term_store=brand_term_store,
            settings=settings,
        )

    def _check_cancelled(
        self, cancel_event: asyncio.Event | None, run_id: str, next_phase: str
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            discovery_logger.run_cancelled(run_id, next_phase)
            raise DiscoveryCancelledError(run_id, next_phase)

    def _ensure_usable_sources(self, request: DiscoveryRequest) -> None:
        has_seeds = any(s and s.strip() for s in request.seeds)
        has_competitors = self._rankings is not None and any(
            c and c.strip() for c in request.competitors
        )
        has_performance = self._performance is not None and bool(
            request.property_id or request.client_domain
        )
        if not (has_seeds or has_competitors or has_performance):
            raise NoUsableSourcesError(
                "No usable keyword sources: provide seeds, competitors with a "
                "ranking provider, or performance access with a property or domain"
            )

    async def _resolve_property(
        self, request: DiscoveryRequest, failures: list[ItemFailure]
    ) -> tuple[str | None, bool]:
        """Return ``(property_id, lookup_failed)``.

        ``lookup_failed`` is True only when the property lookup itself raised;
        a domain that was checked and has no property is not a failed lookup.
        """
        if request.property_id:
            return request.property_id, False
        if self._performance is None:
            if request.client_domain:
                failures.append(
                    ItemFailure.from_exception(
                        "collection",
                        "performance",
                        ConfigurationError(
                            "No performance data provider configured",
                            source="performance",
                        ),
                    )
                )
            return None, False
        if not request.client_domain:
            return None, False

        try:
            property_id = await self._performance.find_property(request.client_domain)
        except Exception as e:
            discovery_logger.item_failure(
                "collection", request.client_domain, type(e).__name__, str(e)
            )
            failures.append(
                ItemFailure.from_exception(
                    "collection",
                    request.client_domain,
                    ConfigurationError(
                        f"Property lookup for {request.client_domain} failed: "
                        f"{type(e).__name__}: {e}",
                        source="performance",
                    ),
                )
            )
            return None, True

        if property_id is None:
            failures.append(
                ItemFailure.from_exception(
                    "collection",
                    request.client_domain,
                    ConfigurationError(
                        f"No performance property found for {request.client_domain}",
                        source="performance",
                    ),
                )
            )
        return property_id, False

    async def _load_brand_terms(
        self, request: DiscoveryRequest, failures: list[ItemFailure]
    ) -> list[BrandTerm]:
        terms = list(request.brand_terms)
        if self._brand_terms is None or not request.client_id:
            return terms
        try:
            terms.extend(await self._brand_terms.get_terms(request.client_id))
        except Exception as e:
            discovery_logger.item_failure(
                "brand_filter", request.client_id, type(e).__name__, str(e)
            )
            failures.append(
                ItemFailure.from_exception("brand_filter", request.client_id, e)
            )
        return terms

    async def discover(
        self,
        request: DiscoveryRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> DiscoveryResult:
        """Run every phase and return scored, sorted candidates.

        Raises:
            NoUsableSourcesError: Nothing to collect keywords from
            DiscoveryCancelledError: ``cancel_event`` was set between phases
        """
        run_id = request.run_id or str(uuid.uuid4())[:8]
        run_start = time.monotonic()
        failures: list[ItemFailure] = []
        durations: dict[str, float] = {}

        self._ensure_usable_sources(request)

        # 1. collection
        self._check_cancelled(cancel_event, run_id, "collection")
        phase_start = time.monotonic()
        discovery_logger.phase_start(
            "collection", run_id, len(request.seeds) + len(request.competitors)
        )
        property_id, lookup_failed = await self._resolve_property(request, failures)
        has_seeds = any(s and s.strip() for s in request.seeds)
        has_competitors = self._rankings is not None and any(
            c and c.strip() for c in request.competitors
        )
        # a failed lookup is recorded above and the run finishes empty
        if not (has_seeds or has_competitors or property_id or lookup_failed):
            raise NoUsableSourcesError(
                "No usable keyword sources: performance property could not be "
                "resolved and no seeds or competitors were given"
            )

        narrow_query = None
        if property_id:
            narrow_query = PerformanceQuery(
                property_id=property_id,
                date_start=request.date_start,
                date_end=request.date_end,
                limit=request.narrow_limit or self._settings.discovery_narrow_row_limit,
            )
        collected = await self._collector.collect(
            request.seeds, request.competitors, narrow_query
        )
        failures.extend(collected.failures)
        durations["collection"] = self._finish_phase(
            "collection",
            run_id,
            phase_start,
            len(collected.successes),
            collected.failure_count,
        )

        # 2. brand filter
        self._check_cancelled(cancel_event, run_id, "brand_filter")
        phase_start = time.monotonic()
        discovery_logger.phase_start("brand_filter", run_id, len(collected.successes))
        brand_failures_before = len(failures)
        terms = await self._load_brand_terms(request, failures)
        filtered = BrandFilter(terms).apply(collected.successes)
        durations["brand_filter"] = self._finish_phase(
            "brand_filter",
            run_id,
            phase_start,
            len(filtered.kept),
            len(failures) - brand_failures_before,
        )

        # 3. deduplication
        self._check_cancelled(cancel_event, run_id, "deduplication")
        phase_start = time.monotonic()
        discovery_logger.phase_start("deduplication", run_id, len(filtered.kept))
        deduped = deduplicate(filtered.kept)
        durations["deduplication"] = self._finish_phase(
            "deduplication", run_id, phase_start, len(deduped.candidates)
        )

        # 4. enrichment
        self._check_cancelled(cancel_event, run_id, "enrichment")
        phase_start = time.monotonic()
        discovery_logger.phase_start("enrichment", run_id, len(deduped.candidates))
        enriched = await self._enricher.enrich(deduped.candidates)
        failures.extend(enriched.failures)
        durations["enrichment"] = self._finish_phase(
            "enrichment",
            run_id,
            phase_start,
            len(enriched.successes),
            enriched.failure_count,
        )

        # 5. cross-reference
        self._check_cancelled(cancel_event, run_id, "cross_reference")
        phase_start = time.monotonic()
        discovery_logger.phase_start("cross_reference", run_id, len(enriched.successes))
        wide_query = None
        if property_id:
            wide_query = PerformanceQuery(
                property_id=property_id,
                date_start=request.date_start,
                date_end=request.date_end,
                limit=request.wide_limit or self._settings.discovery_wide_row_limit,
            )
        referenced = await self._cross_referencer.cross_reference(
            enriched.successes, wide_query
        )
        failures.extend(referenced.failures)
        durations["cross_reference"] = self._finish_phase(
            "cross_reference",
            run_id,
            phase_start,
            len(referenced.successes),
            referenced.failure_count,
        )

        # 6. scoring
        self._check_cancelled(cancel_event, run_id, "scoring")
        phase_start = time.monotonic()
        discovery_logger.phase_start("scoring", run_id, len(referenced.successes))
        scored = score_and_sort(referenced.successes)
        durations["scoring"] = self._finish_phase(
            "scoring", run_id, phase_start, len(scored)
        )

        stats = DiscoveryStats.from_candidates(
            scored,
            branded_removed=filtered.removed_count,
            raw_collected=len(collected.successes),
            duplicates_merged=deduped.duplicates_merged,
        )
        duration_ms = (time.monotonic() - run_start) * 1000
        discovery_logger.run_complete(
            run_id,
            duration_ms,
            {
                "total": stats.total,
                "branded_removed": stats.branded_removed,
                "quick_wins": stats.quick_wins,
                "failure_count": len(failures),
            },
        )

        return DiscoveryResult(
            run_id=run_id,
            candidates=scored,
            stats=stats,
            failures=failures,
            property_id=property_id,
            phase_durations_ms=durations,
            duration_ms=duration_ms,
        )

    def _finish_phase(
        self,
        phase: str,
        run_id: str,
        phase_start: float,
        output_count: int,
        failure_count: int = 0,
    ) -> float:
        duration_ms = (time.monotonic() - phase_start) * 1000
        discovery_logger.phase_complete(
            phase, run_id, duration_ms, output_count, failure_count
        )
        return round(duration_ms, 2)


# Global service instance
_keyword_discovery_service: KeywordDiscoveryService | None = None


async def get_keyword_discovery_service() -> KeywordDiscoveryService:
    """Get the global discovery service wired to the global API clients."""
    global _keyword_discovery_service
    if _keyword_discovery_service is None:
        _keyword_discovery_service = KeywordDiscoveryService.from_clients(
            await get_dataforseo(),
            await get_search_console(),
        )
        logger.info("KeywordDiscoveryService singleton created")
    return _keyword_discovery_service
