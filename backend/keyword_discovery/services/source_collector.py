"""SourceCollector: gathers raw keyword candidates from every source.

Sources:
- Manual seeds, each included as-is and expanded through keyword suggestions
- Competitor domains, each contributing its ranked keywords (capped)
- The client's own search performance (narrow, early-visibility fetch)

Seed expansions and competitor lookups run concurrently under a shared
semaphore. Each worker returns its own list; lists are concatenated after
``asyncio.gather`` in input order, so the raw output order is deterministic:
seeds, then expansions in seed order, then performance rows, then competitor
keywords in domain order.

A failing seed expansion, competitor lookup or performance fetch never aborts
collection. It is recorded as an ``ItemFailure`` and contributes nothing.
"""

import asyncio
import time
from dataclasses import dataclass

from keyword_discovery.core.logging import discovery_logger, get_logger
from keyword_discovery.services.candidates import (
    KeywordCandidate,
    KeywordSource,
    PhaseResult,
    SearchIntent,
)
from keyword_discovery.services.discovery_errors import (
    ConfigurationError,
    ItemFailure,
    SourceFetchError,
)
from keyword_discovery.services.providers import (
    CompetitorRankingProvider,
    KeywordSuggestionProvider,
    PerformanceDataProvider,
)

logger = get_logger(__name__)

PHASE = "collection"

DEFAULT_SUGGESTIONS_PER_SEED = 10
DEFAULT_COMPETITOR_KEYWORD_LIMIT = 50
DEFAULT_MAX_CONCURRENT = 5


@dataclass(frozen=True)
class PerformanceQuery:
    """Which slice of the client's performance data to fetch.

    Dates are ISO strings; ``None`` lets the provider apply its default
    lookback window.
    """

    property_id: str
    date_start: str | None = None
    date_end: str | None = None
    limit: int = 25


class SourceCollector:
    """Collects raw, possibly duplicated candidates from all sources."""

    def __init__(
        self,
        suggestion_provider: KeywordSuggestionProvider | None = None,
        ranking_provider: CompetitorRankingProvider | None = None,
        performance_provider: PerformanceDataProvider | None = None,
        suggestions_per_seed: int = DEFAULT_SUGGESTIONS_PER_SEED,
        competitor_keyword_limit: int = DEFAULT_COMPETITOR_KEYWORD_LIMIT,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        performance_timeout: float | None = None,
    ) -> None:
        self._suggestions = suggestion_provider
        self._rankings = ranking_provider
        self._performance = performance_provider
        self._suggestions_per_seed = suggestions_per_seed
        self._competitor_keyword_limit = competitor_keyword_limit
        self._max_concurrent = max(1, max_concurrent)
        self._performance_timeout = performance_timeout

    async def collect(
        self,
        seeds: list[str],
        competitors: list[str],
        performance: PerformanceQuery | None = None,
    ) -> PhaseResult[KeywordCandidate]:
        """Collect candidates from seeds, performance data and competitors.

        Args:
            seeds: Manual seed keywords
            competitors: Competitor domains
            performance: Narrow performance fetch parameters, or None to skip

        Returns:
            PhaseResult with raw candidates and per-item failures
        """
        start_time = time.monotonic()
        semaphore = asyncio.Semaphore(self._max_concurrent)
        failures: list[ItemFailure] = []

        seeds = [seed.strip() for seed in seeds if seed and seed.strip()]
        competitors = [c.strip() for c in competitors if c and c.strip()]

        seed_candidates = [
            KeywordCandidate.create(seed, KeywordSource.MANUAL) for seed in seeds
        ]

        expansion_tasks = []
        if seeds and self._suggestions is None:
            failures.append(
                ItemFailure.from_exception(
                    PHASE,
                    "keyword_suggestions",
                    ConfigurationError(
                        "No keyword suggestion provider configured; "
                        "seeds are used without expansion",
                        source="keyword_suggestions",
                    ),
                )
            )
        elif self._suggestions is not None:
            expansion_tasks = [self._expand_seed(seed, semaphore) for seed in seeds]

        competitor_tasks = []
        if competitors and self._rankings is None:
            failures.append(
                ItemFailure.from_exception(
                    PHASE,
                    "competitor_rankings",
                    ConfigurationError(
                        "No competitor ranking provider configured",
                        source="competitor_rankings",
                    ),
                )
            )
        elif self._rankings is not None:
            competitor_tasks = [
                self._fetch_competitor(domain, semaphore) for domain in competitors
            ]

        expansions, performance_result, competitor_results = await asyncio.gather(
            asyncio.gather(*expansion_tasks),
            self._fetch_performance(performance),
            asyncio.gather(*competitor_tasks),
        )

        candidates: list[KeywordCandidate] = list(seed_candidates)
        for group in (*expansions, performance_result, *competitor_results):
            candidates.extend(group.successes)
            failures.extend(group.failures)

        duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            "Source collection finished",
            extra={
                "seeds": len(seeds),
                "competitors": len(competitors),
                "performance_property": performance.property_id
                if performance
                else None,
                "candidates": len(candidates),
                "failures": len(failures),
                "duration_ms": round(duration_ms, 2),
            },
        )
        return PhaseResult(successes=candidates, failures=failures)

    def _failure(self, item: str, source: str, error: Exception) -> ItemFailure:
        wrapped = SourceFetchError(
            f"{type(error).__name__}: {error}", item=item, source=source
        )
        failure = ItemFailure.from_exception(PHASE, item, wrapped)
        discovery_logger.item_failure(
            PHASE, item, type(error).__name__, str(error) or type(error).__name__
        )
        return failure

    async def _expand_seed(
        self, seed: str, semaphore: asyncio.Semaphore
    ) -> PhaseResult[KeywordCandidate]:
        assert self._suggestions is not None
        async with semaphore:
            try:
                suggestions = await self._suggestions.suggest(
                    seed, self._suggestions_per_seed
                )
            except Exception as e:
                return PhaseResult(
                    failures=[self._failure(seed, "keyword_suggestions", e)]
                )

        return PhaseResult(
            successes=[
                KeywordCandidate.create(keyword, KeywordSource.MANUAL)
                for keyword in suggestions[: self._suggestions_per_seed]
                if keyword and keyword.strip()
            ]
        )

    async def _fetch_competitor(
        self, domain: str, semaphore: asyncio.Semaphore
    ) -> PhaseResult[KeywordCandidate]:
        assert self._rankings is not None
        async with semaphore:
            try:
                rankings = await self._rankings.get_rankings(domain)
            except Exception as e:
                return PhaseResult(
                    failures=[self._failure(domain, "competitor_rankings", e)]
                )

        capped = rankings[: self._competitor_keyword_limit]
        return PhaseResult(
            successes=[
                KeywordCandidate.create(keyword, KeywordSource.COMPETITOR)
                for keyword in capped
                if keyword and keyword.strip()
            ]
        )

    async def _fetch_performance(
        self, query: PerformanceQuery | None
    ) -> PhaseResult[KeywordCandidate]:
        if query is None:
            return PhaseResult()

        if self._performance is None:
            return PhaseResult(
                failures=[
                    ItemFailure.from_exception(
                        PHASE,
                        query.property_id,
                        ConfigurationError(
                            "No performance data provider configured",
                            source="performance",
                        ),
                    )
                ]
            )

        fetch = self._performance.get_queries(
            query.property_id, query.date_start, query.date_end, query.limit
        )
        try:
            if self._performance_timeout:
                rows = await asyncio.wait_for(fetch, timeout=self._performance_timeout)
            else:
                rows = await fetch
        except TimeoutError:
            timeout_error = TimeoutError(
                f"Performance fetch timed out after {self._performance_timeout}s"
            )
            return PhaseResult(
                failures=[
                    self._failure(query.property_id, "performance", timeout_error)
                ]
            )
        except Exception as e:
            return PhaseResult(
                failures=[self._failure(query.property_id, "performance", e)]
            )

        return PhaseResult(
            successes=[
                KeywordCandidate.create(
                    row.keyword,
                    KeywordSource.PERFORMANCE,
                    clicks=row.clicks,
                    impressions=row.impressions,
                    ctr=row.ctr,
                    position=row.position,
                    intent=SearchIntent.parse(row.intent) if row.intent else None,
                )
                for row in rows[: query.limit]
                if row.keyword and row.keyword.strip()
            ]
        )
