"""Collaborator contracts consumed by the discovery pipeline.

The pipeline only depends on the protocols below. Adapters implement them on
top of the DataForSEO and Search Console clients; tests substitute mocks.
Adapters raise the client's own error type when a call does not succeed, and
the pipeline phases turn those into recorded failures.
"""

from dataclasses import dataclass
from typing import Protocol

from keyword_discovery.core.logging import get_logger
from keyword_discovery.integrations.dataforseo import DataForSEOClient, DataForSEOError
from keyword_discovery.integrations.search_console import (
    SearchConsoleClient,
    SearchConsoleError,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeywordMetadata:
    """Enrichment data for one keyword, as reported by the provider."""

    keyword: str
    search_volume: int | None = None
    competition_level: str | None = None
    cpc: float | None = None
    intent: str | None = None


@dataclass(frozen=True)
class PerformanceRow:
    """One query from the client's own search performance export."""

    keyword: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float | None = None
    intent: str | None = None


@dataclass(frozen=True)
class BrandTerm:
    """A client brand term; ``is_regex`` terms are matched as patterns."""

    term: str
    is_regex: bool = False


class KeywordSuggestionProvider(Protocol):
    async def suggest(self, seed: str, limit: int) -> list[str]: ...


class CompetitorRankingProvider(Protocol):
    async def get_rankings(self, domain: str) -> list[str]: ...


class BulkMetadataProvider(Protocol):
    async def get_metadata(self, keywords: list[str]) -> list[KeywordMetadata]: ...


class PerformanceDataProvider(Protocol):
    async def get_queries(
        self,
        property_id: str,
        date_start: str | None,
        date_end: str | None,
        limit: int,
    ) -> list[PerformanceRow]: ...

    async def find_property(self, domain: str) -> str | None: ...


class BrandTermStore(Protocol):
    async def get_terms(self, client_id: str) -> list[BrandTerm]: ...


class DataForSEOSuggestionProvider:
    """Seed expansion through DataForSEO keyword suggestions."""

    def __init__(self, client: DataForSEOClient) -> None:
        self._client = client

    async def suggest(self, seed: str, limit: int) -> list[str]:
        result = await self._client.get_keyword_suggestions(seed, limit=limit)
        if not result.success:
            raise DataForSEOError(
                result.error or "Keyword suggestions failed",
                request_id=result.request_id,
            )
        return result.keywords


class DataForSEORankingProvider:
    """Competitor ranked keywords through DataForSEO."""

    def __init__(self, client: DataForSEOClient, limit: int = 50) -> None:
        self._client = client
        self._limit = limit

    async def get_rankings(self, domain: str) -> list[str]:
        result = await self._client.get_ranked_keywords(domain, limit=self._limit)
        if not result.success:
            raise DataForSEOError(
                result.error or "Ranked keywords lookup failed",
                request_id=result.request_id,
            )
        return result.keywords


class DataForSEOMetadataProvider:
    """Bulk volume/competition/CPC/intent through DataForSEO keyword overview."""

    def __init__(self, client: DataForSEOClient) -> None:
        self._client = client

    async def get_metadata(self, keywords: list[str]) -> list[KeywordMetadata]:
        result = await self._client.get_keyword_overview(keywords)
        if not result.success:
            raise DataForSEOError(
                result.error or "Keyword overview failed",
                request_id=result.request_id,
            )
        if result.error:
            # Some tasks failed; their keywords fall back to defaults
            logger.warning(
                "Keyword overview partially failed",
                extra={
                    "error": result.error,
                    "requested": len(keywords),
                    "returned": len(result.keywords),
                },
            )
        return [
            KeywordMetadata(
                keyword=item.keyword,
                search_volume=item.search_volume,
                competition_level=item.competition_level,
                cpc=item.cpc,
                intent=item.intent,
            )
            for item in result.keywords
        ]


class SearchConsolePerformanceProvider:
    """Client search performance through the Search Console API."""

    def __init__(self, client: SearchConsoleClient) -> None:
        self._client = client

    async def get_queries(
        self,
        property_id: str,
        date_start: str | None,
        date_end: str | None,
        limit: int,
    ) -> list[PerformanceRow]:
        result = await self._client.query_search_analytics(
            property_id,
            start_date=date_start,
            end_date=date_end,
            row_limit=limit,
        )
        if not result.success:
            raise SearchConsoleError(
                result.error or "Search analytics query failed",
                request_id=result.request_id,
            )
        return [
            PerformanceRow(
                keyword=row.keyword,
                clicks=row.clicks,
                impressions=row.impressions,
                ctr=row.ctr,
                position=row.position,
            )
            for row in result.rows
        ]

    async def find_property(self, domain: str) -> str | None:
        return await self._client.find_property_for_domain(domain)


class StaticBrandTermStore:
    """Brand terms held in memory, keyed by client id."""

    def __init__(self, terms: dict[str, list[BrandTerm]] | None = None) -> None:
        self._terms: dict[str, list[BrandTerm]] = dict(terms or {})

    def set_terms(self, client_id: str, terms: list[BrandTerm]) -> None:
        self._terms[client_id] = list(terms)

    async def get_terms(self, client_id: str) -> list[BrandTerm]:
        return list(self._terms.get(client_id, []))
