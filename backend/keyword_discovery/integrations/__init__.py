"""Integrations layer - External service clients.

Integrations handle communication with external APIs and services.
They abstract the details of external service protocols.
"""

from keyword_discovery.integrations.dataforseo import (
    DataForSEOAuthError,
    DataForSEOCircuitOpenError,
    DataForSEOClient,
    DataForSEOError,
    DataForSEORateLimitError,
    DataForSEOTimeoutError,
    KeywordListResult,
    KeywordOverviewData,
    KeywordOverviewResult,
    close_dataforseo,
    get_dataforseo,
    init_dataforseo,
)
from keyword_discovery.integrations.search_console import (
    PropertyListResult,
    SearchAnalyticsResult,
    SearchAnalyticsRow,
    SearchConsoleAuthError,
    SearchConsoleCircuitOpenError,
    SearchConsoleClient,
    SearchConsoleError,
    SearchConsoleRateLimitError,
    SearchConsoleTimeoutError,
    close_search_console,
    default_date_window,
    get_search_console,
    init_search_console,
    match_property,
)

__all__ = [
    # DataForSEO
    "DataForSEOAuthError",
    "DataForSEOCircuitOpenError",
    "DataForSEOClient",
    "DataForSEOError",
    "DataForSEORateLimitError",
    "DataForSEOTimeoutError",
    "KeywordListResult",
    "KeywordOverviewData",
    "KeywordOverviewResult",
    "close_dataforseo",
    "get_dataforseo",
    "init_dataforseo",
    # Search Console
    "PropertyListResult",
    "SearchAnalyticsResult",
    "SearchAnalyticsRow",
    "SearchConsoleAuthError",
    "SearchConsoleCircuitOpenError",
    "SearchConsoleClient",
    "SearchConsoleError",
    "SearchConsoleRateLimitError",
    "SearchConsoleTimeoutError",
    "close_search_console",
    "default_date_window",
    "get_search_console",
    "init_search_console",
    "match_property",
]
