"""Pytest configuration and fixtures.

Provides fixtures for:
- Settings override for testing
- Mocked keyword providers (suggestions, rankings, metadata, performance)
- Sample candidate and provider data
"""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest

from keyword_discovery.core.config import Settings, get_settings
from keyword_discovery.services.providers import (
    KeywordMetadata,
    PerformanceRow,
    StaticBrandTermStore,
)

# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


def get_test_settings() -> Settings:
    """Get test settings with no real credentials."""
    return Settings(
        app_name="Test App",
        app_version="0.0.1",
        debug=True,
        environment="test",
        log_level="DEBUG",
        log_format="text",
        dataforseo_api_login=None,
        dataforseo_api_password=None,
        search_console_access_token=None,
        discovery_max_concurrent=3,
        discovery_narrow_fetch_timeout=5.0,
        discovery_wide_fetch_timeout=5.0,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Session-scoped test settings."""
    return get_test_settings()


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Make sure no test sees settings cached by another one."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Provider Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def suggestion_provider() -> AsyncMock:
    """Suggestion provider returning two expansions per seed."""
    provider = AsyncMock()

    async def suggest(seed: str, limit: int) -> list[str]:
        return [f"{seed} ideas", f"best {seed}"][:limit]

    provider.suggest.side_effect = suggest
    return provider


@pytest.fixture
def ranking_provider() -> AsyncMock:
    """Competitor ranking provider keyed by domain."""
    provider = AsyncMock()
    rankings = {
        "rival.com": ["coffee grinder", "Coffee Storage", "espresso machine"],
        "other.com": ["french press", "coffee grinder"],
    }

    async def get_rankings(domain: str) -> list[str]:
        return rankings.get(domain, [])

    provider.get_rankings.side_effect = get_rankings
    return provider


@pytest.fixture
def metadata_provider() -> AsyncMock:
    """Metadata provider that knows a handful of keywords."""
    provider = AsyncMock()
    known = {
        "coffee storage": KeywordMetadata(
            keyword="coffee storage",
            search_volume=500,
            competition_level="LOW",
            cpc=1.2,
            intent="commercial",
        ),
        "coffee grinder": KeywordMetadata(
            keyword="coffee grinder",
            search_volume=5000,
            competition_level="HIGH",
            cpc=2.5,
            intent="transactional",
        ),
        "french press": KeywordMetadata(
            keyword="french press",
            search_volume=150,
            competition_level="LOW",
            cpc=0.8,
            intent="informational",
        ),
    }

    async def get_metadata(keywords: list[str]) -> list[KeywordMetadata]:
        return [known[k.lower()] for k in keywords if k.lower() in known]

    provider.get_metadata.side_effect = get_metadata
    return provider


@pytest.fixture
def performance_rows() -> list[PerformanceRow]:
    return [
        PerformanceRow(
            keyword="coffee storage",
            clicks=40,
            impressions=900,
            ctr=0.044,
            position=15.0,
        ),
        PerformanceRow(
            keyword="coffee canister",
            clicks=5,
            impressions=300,
            ctr=0.017,
            position=7.0,
        ),
    ]


@pytest.fixture
def performance_provider(performance_rows: list[PerformanceRow]) -> AsyncMock:
    """Performance provider returning the same rows for every fetch."""
    provider = AsyncMock()

    async def get_queries(
        property_id: str,
        date_start: str | None,
        date_end: str | None,
        limit: int,
    ) -> list[PerformanceRow]:
        return performance_rows[:limit]

    provider.get_queries.side_effect = get_queries
    provider.find_property.return_value = "sc-domain:example.com"
    return provider


@pytest.fixture
def brand_term_store() -> StaticBrandTermStore:
    return StaticBrandTermStore()
