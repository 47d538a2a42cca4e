"""Google Search Console API integration client.

Fetches the client's own search performance (clicks, impressions, CTR and
average position per query) and detects which verified property belongs to a
domain. Authenticates with an OAuth bearer token obtained by the surrounding
app; the token is never logged. Transport, retries and circuit breaking live
in ``integrations.base``.
"""

import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from urllib.parse import quote, urlparse

from keyword_discovery.core.circuit_breaker import CircuitBreakerConfig
from keyword_discovery.core.config import get_settings
from keyword_discovery.core.logging import get_logger, search_console_logger
from keyword_discovery.integrations.base import (
    APIAuthError,
    APICircuitOpenError,
    APIError,
    APIRateLimitError,
    APITimeoutError,
    BaseAPIClient,
    ErrorFamily,
)

logger = get_logger(__name__)

SEARCH_CONSOLE_API_URL = "https://www.googleapis.com"
SITES_ENDPOINT = "/webmasters/v3/sites"

# Search Console caps a single searchAnalytics query at 25,000 rows
MAX_ROW_LIMIT = 25000

NOT_CONFIGURED = "Search Console not configured (missing access token)"


@dataclass
class SearchAnalyticsRow:
    """Performance of one query for the property."""

    keyword: str
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float | None = None


@dataclass
class SearchAnalyticsResult:
    """Result of a search analytics query."""

    success: bool
    rows: list[SearchAnalyticsRow] = field(default_factory=list)
    property_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    error: str | None = None
    duration_ms: float = 0.0
    request_id: str | None = None


@dataclass
class PropertyListResult:
    """Result of listing verified Search Console properties."""

    success: bool
    properties: list[str] = field(default_factory=list)
    error: str | None = None
    duration_ms: float = 0.0


class SearchConsoleError(APIError):
    """Base exception for Search Console API errors."""


class SearchConsoleTimeoutError(SearchConsoleError, APITimeoutError):
    pass


class SearchConsoleRateLimitError(SearchConsoleError, APIRateLimitError):
    pass


class SearchConsoleAuthError(SearchConsoleError, APIAuthError):
    """Raised when the access token is rejected (401/403)."""


class SearchConsoleCircuitOpenError(SearchConsoleError, APICircuitOpenError):
    pass


def default_date_window(
    lookback_days: int, today: date | None = None
) -> tuple[str, str]:
    """Return ``(start_date, end_date)`` ISO strings for the last N days."""
    end = today or date.today()
    start = end - timedelta(days=lookback_days)
    return start.isoformat(), end.isoformat()


def _normalize_domain(domain: str) -> str:
    domain = domain.strip().lower()
    if "://" in domain:
        domain = urlparse(domain).hostname or domain
    domain = domain.split("/")[0]
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def match_property(domain: str, properties: list[str]) -> str | None:
    """Pick the property that belongs to ``domain``.

    An exact hostname match (with or without ``www.``) wins; otherwise the
    usual URL-prefix and domain-property spellings are tried in order.
    """
    domain = _normalize_domain(domain)
    if not domain:
        return None

    for site_url in properties:
        hostname = urlparse(site_url).hostname
        if hostname in (domain, f"www.{domain}"):
            return site_url

    variations = [
        f"https://{domain}/",
        f"https://www.{domain}/",
        f"http://{domain}/",
        f"http://www.{domain}/",
        f"sc-domain:{domain}",
    ]
    for variation in variations:
        if variation in properties:
            return variation
    return None


class SearchConsoleClient(BaseAPIClient):
    """Async client for the Search Console (webmasters v3) API."""

    service_name = "Search Console"
    base_url = SEARCH_CONSOLE_API_URL
    errors = ErrorFamily(
        base=SearchConsoleError,
        timeout=SearchConsoleTimeoutError,
        rate_limit=SearchConsoleRateLimitError,
        auth=SearchConsoleAuthError,
        circuit_open=SearchConsoleCircuitOpenError,
    )

    def __init__(
        self,
        access_token: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        lookback_days: int | None = None,
    ) -> None:
        settings = get_settings()

        self._access_token = access_token or settings.search_console_access_token
        self._lookback_days = lookback_days or settings.discovery_lookback_days

        super().__init__(
            name="search_console",
            timeout=timeout or settings.search_console_timeout,
            max_retries=max_retries or settings.search_console_max_retries,
            retry_delay=retry_delay or settings.search_console_retry_delay,
            circuit_config=CircuitBreakerConfig(
                failure_threshold=settings.search_console_circuit_failure_threshold,
                recovery_timeout=settings.search_console_circuit_recovery_timeout,
            ),
            event_logger=search_console_logger,
            available=bool(self._access_token),
        )

    @property
    def not_configured_message(self) -> str:
        return NOT_CONFIGURED

    def _auth_headers(self) -> dict[str, str]:
        if not self._access_token:
            return {}
        return {"Authorization": f"Bearer {self._access_token}"}

    async def query_search_analytics(
        self,
        property_id: str,
        start_date: str | None = None,
        end_date: str | None = None,
        row_limit: int = 1000,
    ) -> SearchAnalyticsResult:
        """Fetch per-query performance rows for a property.

        Args:
            property_id: Verified site URL or ``sc-domain:`` property
            start_date: ISO date, defaults to the start of the lookback window
            end_date: ISO date, defaults to today
            row_limit: Maximum rows (capped at the API maximum)
        """
        if not self._available:
            return SearchAnalyticsResult(
                success=False,
                property_id=property_id,
                error=NOT_CONFIGURED,
            )

        if not property_id:
            return SearchAnalyticsResult(
                success=False, error="No Search Console property provided"
            )

        default_start, default_end = default_date_window(self._lookback_days)
        start_date = start_date or default_start
        end_date = end_date or default_end
        row_limit = max(1, min(row_limit, MAX_ROW_LIMIT))

        endpoint = (
            f"{SITES_ENDPOINT}/{quote(property_id, safe='')}/searchAnalytics/query"
        )
        payload = {
            "startDate": start_date,
            "endDate": end_date,
            "dimensions": ["query"],
            "rowLimit": row_limit,
        }

        start_time = time.monotonic()
        search_console_logger.query_start(property_id, start_date, end_date, row_limit)

        try:
            response_data, request_id = await self._make_request(endpoint, payload)
        except SearchConsoleError as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            search_console_logger.query_complete(property_id, duration_ms, False)
            return SearchAnalyticsResult(
                success=False,
                property_id=property_id,
                start_date=start_date,
                end_date=end_date,
                error=str(e),
                duration_ms=duration_ms,
                request_id=e.request_id,
            )

        rows: list[SearchAnalyticsRow] = []
        for raw in response_data.get("rows") or []:
            keys = raw.get("keys") or []
            if not keys or not keys[0]:
                continue
            rows.append(
                SearchAnalyticsRow(
                    keyword=keys[0],
                    clicks=int(raw.get("clicks", 0)),
                    impressions=int(raw.get("impressions", 0)),
                    ctr=float(raw.get("ctr", 0.0)),
                    position=raw.get("position"),
                )
            )

        duration_ms = (time.monotonic() - start_time) * 1000
        search_console_logger.query_complete(
            property_id, duration_ms, True, rows_count=len(rows)
        )
        return SearchAnalyticsResult(
            success=True,
            rows=rows,
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            duration_ms=duration_ms,
            request_id=request_id,
        )

    async def list_properties(self) -> PropertyListResult:
        """List the site URLs of every property the token can read."""
        if not self._available:
            return PropertyListResult(
                success=False,
                error=NOT_CONFIGURED,
            )

        start_time = time.monotonic()
        try:
            response_data, _ = await self._make_request(
                SITES_ENDPOINT, payload=None, method="GET"
            )
        except SearchConsoleError as e:
            return PropertyListResult(
                success=False,
                error=str(e),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )

        properties = [
            entry["siteUrl"]
            for entry in response_data.get("siteEntry") or []
            if entry.get("siteUrl")
        ]
        return PropertyListResult(
            success=True,
            properties=properties,
            duration_ms=(time.monotonic() - start_time) * 1000,
        )

    async def find_property_for_domain(self, domain: str) -> str | None:
        """Return the property matching ``domain``, or None if there is none."""
        result = await self.list_properties()
        if not result.success:
            search_console_logger.graceful_fallback(
                "find_property_for_domain", result.error or "Property list failed"
            )
            return None

        property_id = match_property(domain, result.properties)
        search_console_logger.property_detected(
            domain, property_id, len(result.properties)
        )
        return property_id


# Global Search Console client instance
search_console_client: SearchConsoleClient | None = None


async def init_search_console() -> SearchConsoleClient:
    """Initialize the global Search Console client."""
    global search_console_client
    if search_console_client is None:
        search_console_client = SearchConsoleClient()
        if search_console_client.available:
            logger.info("Search Console client initialized")
        else:
            logger.info(NOT_CONFIGURED)
    return search_console_client


async def close_search_console() -> None:
    """Close the global Search Console client."""
    global search_console_client
    if search_console_client:
        await search_console_client.close()
        search_console_client = None


async def get_search_console() -> SearchConsoleClient:
    """Get the global Search Console client, creating it on first use."""
    if search_console_client is None:
        return await init_search_console()
    return search_console_client
