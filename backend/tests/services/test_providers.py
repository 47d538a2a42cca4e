"""Tests for the provider adapters over the API clients."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from keyword_discovery.integrations.dataforseo import (
    DataForSEOError,
    KeywordListResult,
    KeywordOverviewData,
    KeywordOverviewResult,
)
from keyword_discovery.integrations.search_console import (
    SearchAnalyticsResult,
    SearchAnalyticsRow,
    SearchConsoleError,
)
from keyword_discovery.services.providers import (
    BrandTerm,
    DataForSEOMetadataProvider,
    DataForSEORankingProvider,
    DataForSEOSuggestionProvider,
    KeywordMetadata,
    PerformanceRow,
    SearchConsolePerformanceProvider,
    StaticBrandTermStore,
)


@pytest.fixture
def dataforseo_client() -> MagicMock:
    client = MagicMock()
    client.get_keyword_suggestions = AsyncMock()
    client.get_ranked_keywords = AsyncMock()
    client.get_keyword_overview = AsyncMock()
    return client


@pytest.fixture
def search_console_client() -> MagicMock:
    client = MagicMock()
    client.query_search_analytics = AsyncMock()
    client.find_property_for_domain = AsyncMock()
    return client


# ---------------------------------------------------------------------------
# DataForSEO Adapters
# ---------------------------------------------------------------------------


class TestDataForSEOSuggestionProvider:
    @pytest.mark.asyncio
    async def test_returns_keywords(self, dataforseo_client: MagicMock) -> None:
        dataforseo_client.get_keyword_suggestions.return_value = KeywordListResult(
            success=True, keywords=["coffee ideas", "best coffee"]
        )

        keywords = await DataForSEOSuggestionProvider(dataforseo_client).suggest(
            "coffee", 5
        )

        assert keywords == ["coffee ideas", "best coffee"]
        dataforseo_client.get_keyword_suggestions.assert_awaited_once_with(
            "coffee", limit=5
        )

    @pytest.mark.asyncio
    async def test_raises_on_failure(self, dataforseo_client: MagicMock) -> None:
        dataforseo_client.get_keyword_suggestions.return_value = KeywordListResult(
            success=False, error="Request timed out after 60.0s", request_id="abc"
        )

        with pytest.raises(DataForSEOError) as exc_info:
            await DataForSEOSuggestionProvider(dataforseo_client).suggest("coffee", 5)

        assert "timed out" in str(exc_info.value)
        assert exc_info.value.request_id == "abc"


class TestDataForSEORankingProvider:
    @pytest.mark.asyncio
    async def test_uses_configured_limit(self, dataforseo_client: MagicMock) -> None:
        dataforseo_client.get_ranked_keywords.return_value = KeywordListResult(
            success=True, keywords=["french press"]
        )

        keywords = await DataForSEORankingProvider(
            dataforseo_client, limit=20
        ).get_rankings("rival.com")

        assert keywords == ["french press"]
        dataforseo_client.get_ranked_keywords.assert_awaited_once_with(
            "rival.com", limit=20
        )

    @pytest.mark.asyncio
    async def test_raises_on_failure(self, dataforseo_client: MagicMock) -> None:
        dataforseo_client.get_ranked_keywords.return_value = KeywordListResult(
            success=False, error=None
        )

        with pytest.raises(DataForSEOError, match="Ranked keywords lookup failed"):
            await DataForSEORankingProvider(dataforseo_client).get_rankings("x.com")


class TestDataForSEOMetadataProvider:
    @pytest.mark.asyncio
    async def test_maps_overview_data(self, dataforseo_client: MagicMock) -> None:
        dataforseo_client.get_keyword_overview.return_value = KeywordOverviewResult(
            success=True,
            keywords=[
                KeywordOverviewData(
                    keyword="coffee storage",
                    search_volume=500,
                    competition_level="LOW",
                    cpc=1.2,
                    intent="commercial",
                )
            ],
        )

        metadata = await DataForSEOMetadataProvider(dataforseo_client).get_metadata(
            ["coffee storage"]
        )

        assert metadata == [
            KeywordMetadata(
                keyword="coffee storage",
                search_volume=500,
                competition_level="LOW",
                cpc=1.2,
                intent="commercial",
            )
        ]

    @pytest.mark.asyncio
    async def test_partial_success_returns_data(
        self, dataforseo_client: MagicMock
    ) -> None:
        dataforseo_client.get_keyword_overview.return_value = KeywordOverviewResult(
            success=True,
            keywords=[KeywordOverviewData(keyword="a", search_volume=10)],
            error="Task 2: Internal error",
        )

        metadata = await DataForSEOMetadataProvider(dataforseo_client).get_metadata(
            ["a", "b"]
        )

        assert [m.keyword for m in metadata] == ["a"]

    @pytest.mark.asyncio
    async def test_raises_on_failure(self, dataforseo_client: MagicMock) -> None:
        dataforseo_client.get_keyword_overview.return_value = KeywordOverviewResult(
            success=False, error="Authentication failed"
        )

        with pytest.raises(DataForSEOError, match="Authentication failed"):
            await DataForSEOMetadataProvider(dataforseo_client).get_metadata(["a"])


# ---------------------------------------------------------------------------
# Search Console Adapter
# ---------------------------------------------------------------------------


class TestSearchConsolePerformanceProvider:
    @pytest.mark.asyncio
    async def test_maps_rows(self, search_console_client: MagicMock) -> None:
        search_console_client.query_search_analytics.return_value = (
            SearchAnalyticsResult(
                success=True,
                rows=[
                    SearchAnalyticsRow(
                        keyword="coffee storage",
                        clicks=40,
                        impressions=900,
                        ctr=0.044,
                        position=15.0,
                    )
                ],
            )
        )
        provider = SearchConsolePerformanceProvider(search_console_client)

        rows = await provider.get_queries(
            "sc-domain:example.com", "2026-01-01", "2026-03-31", 25
        )

        assert rows == [
            PerformanceRow(
                keyword="coffee storage",
                clicks=40,
                impressions=900,
                ctr=0.044,
                position=15.0,
            )
        ]
        search_console_client.query_search_analytics.assert_awaited_once_with(
            "sc-domain:example.com",
            start_date="2026-01-01",
            end_date="2026-03-31",
            row_limit=25,
        )

    @pytest.mark.asyncio
    async def test_raises_on_failure(self, search_console_client: MagicMock) -> None:
        search_console_client.query_search_analytics.return_value = (
            SearchAnalyticsResult(success=False, error="Forbidden")
        )
        provider = SearchConsolePerformanceProvider(search_console_client)

        with pytest.raises(SearchConsoleError, match="Forbidden"):
            await provider.get_queries("sc-domain:example.com", None, None, 25)

    @pytest.mark.asyncio
    async def test_find_property_delegates(
        self, search_console_client: MagicMock
    ) -> None:
        search_console_client.find_property_for_domain.return_value = (
            "https://example.com/"
        )
        provider = SearchConsolePerformanceProvider(search_console_client)

        assert await provider.find_property("example.com") == "https://example.com/"


# ---------------------------------------------------------------------------
# Brand Term Store
# ---------------------------------------------------------------------------


class TestStaticBrandTermStore:
    @pytest.mark.asyncio
    async def test_unknown_client_has_no_terms(self) -> None:
        assert await StaticBrandTermStore().get_terms("client-1") == []

    @pytest.mark.asyncio
    async def test_set_and_get_terms(self) -> None:
        store = StaticBrandTermStore({"client-1": [BrandTerm("acme")]})
        store.set_terms("client-2", [BrandTerm(r"glob(ex)?", is_regex=True)])

        assert await store.get_terms("client-1") == [BrandTerm("acme")]
        assert await store.get_terms("client-2") == [
            BrandTerm(r"glob(ex)?", is_regex=True)
        ]

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self) -> None:
        store = StaticBrandTermStore({"client-1": [BrandTerm("acme")]})

        terms = await store.get_terms("client-1")
        terms.append(BrandTerm("other"))

        assert await store.get_terms("client-1") == [BrandTerm("acme")]
