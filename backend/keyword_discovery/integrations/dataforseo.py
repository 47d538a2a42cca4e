"""DataForSEO Labs client: suggestions, competitor rankings, bulk metadata.

Endpoints used (DataForSEO Labs, Google):
- keyword_suggestions: lexical expansions of a seed keyword
- ranked_keywords: keywords a competitor domain ranks for
- keyword_overview: bulk volume / competition / CPC / search intent

DataForSEO answers HTTP 200 even when a task inside the request failed, so
every response is also checked per task (status 20000 is success).
Transport, retries and circuit breaking live in ``integrations.base``.
Request bodies are logged at DEBUG, cost per call at INFO; the Basic auth
credentials are never logged.
"""

import base64
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from keyword_discovery.core.circuit_breaker import CircuitBreakerConfig
from keyword_discovery.core.config import get_settings
from keyword_discovery.core.logging import dataforseo_logger, get_logger
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

DATAFORSEO_API_URL = "https://api.dataforseo.com"

# keyword_overview accepts at most 700 keywords per task
MAX_OVERVIEW_KEYWORDS_PER_TASK = 700

TASK_STATUS_OK = 20000

SUGGESTIONS_ENDPOINT = "/v3/dataforseo_labs/google/keyword_suggestions/live"
RANKED_KEYWORDS_ENDPOINT = "/v3/dataforseo_labs/google/ranked_keywords/live"
KEYWORD_OVERVIEW_ENDPOINT = "/v3/dataforseo_labs/google/keyword_overview/live"

NOT_CONFIGURED = "DataForSEO not configured (missing API credentials)"


@dataclass
class KeywordListResult:
    """Keywords returned by suggestions or ranked keywords."""

    success: bool
    keywords: list[str] = field(default_factory=list)
    error: str | None = None
    cost: float | None = None
    duration_ms: float = 0.0
    request_id: str | None = None


@dataclass
class KeywordOverviewData:
    keyword: str
    search_volume: int | None = None
    competition_level: str | None = None
    cpc: float | None = None
    intent: str | None = None


@dataclass
class KeywordOverviewResult:
    """Bulk metadata; ``error`` lists failed tasks even on partial success."""

    success: bool
    keywords: list[KeywordOverviewData] = field(default_factory=list)
    error: str | None = None
    cost: float | None = None
    duration_ms: float = 0.0
    request_id: str | None = None


class DataForSEOError(APIError):
    """Base exception for DataForSEO API errors."""


class DataForSEOTimeoutError(DataForSEOError, APITimeoutError):
    pass


class DataForSEORateLimitError(DataForSEOError, APIRateLimitError):
    pass


class DataForSEOAuthError(DataForSEOError, APIAuthError):
    pass


class DataForSEOCircuitOpenError(DataForSEOError, APICircuitOpenError):
    pass


def _task_error(task: dict[str, Any]) -> str | None:
    status_code = task.get("status_code")
    if status_code is None or status_code == TASK_STATUS_OK:
        return None
    return f"Task failed ({status_code}): {task.get('status_message', 'unknown')}"


def _task_items(task: dict[str, Any]) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for result in task.get("result") or []:
        items.extend((result or {}).get("items") or [])
    return items


def _collect_items(response_data: dict[str, Any]) -> list[dict[str, Any]]:
    """All result items of a single-task response; raises on a failed task."""
    items: list[dict[str, Any]] = []
    for task in response_data.get("tasks") or []:
        error = _task_error(task)
        if error:
            raise DataForSEOError(
                error, status_code=task.get("status_code"), response_body=task
            )
        items.extend(_task_items(task))
    return items


def _overview_data(item: dict[str, Any]) -> KeywordOverviewData:
    info = item.get("keyword_info") or {}
    cpc = info.get("cpc")
    return KeywordOverviewData(
        keyword=item["keyword"],
        search_volume=info.get("search_volume"),
        competition_level=info.get("competition_level"),
        cpc=float(cpc) if cpc is not None else None,
        intent=(item.get("search_intent_info") or {}).get("main_intent"),
    )


class DataForSEOClient(BaseAPIClient):
    """Async client for the DataForSEO Labs API (HTTP Basic auth)."""

    service_name = "DataForSEO"
    base_url = DATAFORSEO_API_URL
    errors = ErrorFamily(
        base=DataForSEOError,
        timeout=DataForSEOTimeoutError,
        rate_limit=DataForSEORateLimitError,
        auth=DataForSEOAuthError,
        circuit_open=DataForSEOCircuitOpenError,
    )

    def __init__(
        self,
        api_login: str | None = None,
        api_password: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        default_location_code: int | None = None,
        default_language_code: str | None = None,
    ) -> None:
        """Initialize the client; unset arguments fall back to settings."""
        settings = get_settings()

        self._api_login = api_login or settings.dataforseo_api_login
        self._api_password = api_password or settings.dataforseo_api_password
        self._location_code = (
            default_location_code or settings.dataforseo_default_location_code
        )
        self._language_code = (
            default_language_code or settings.dataforseo_default_language_code
        )

        super().__init__(
            name="dataforseo",
            timeout=timeout or settings.dataforseo_timeout,
            max_retries=max_retries or settings.dataforseo_max_retries,
            retry_delay=retry_delay or settings.dataforseo_retry_delay,
            circuit_config=CircuitBreakerConfig(
                failure_threshold=settings.dataforseo_circuit_failure_threshold,
                recovery_timeout=settings.dataforseo_circuit_recovery_timeout,
            ),
            event_logger=dataforseo_logger,
            available=bool(self._api_login and self._api_password),
        )

    @property
    def not_configured_message(self) -> str:
        return NOT_CONFIGURED

    def _get_auth_header(self) -> str:
        credentials = f"{self._api_login}:{self._api_password}"
        return "Basic " + base64.b64encode(credentials.encode()).decode()

    def _auth_headers(self) -> dict[str, str]:
        if not self._available:
            return {}
        return {"Authorization": self._get_auth_header()}

    def _log_request(self, endpoint: str, payload: Any) -> None:
        dataforseo_logger.request_body(endpoint, payload)

    def _log_response(self, endpoint: str, response_data: dict[str, Any]) -> None:
        cost = response_data.get("cost")
        if cost is not None:
            dataforseo_logger.cost_usage(cost, endpoint=endpoint)

    def _target(
        self, location_code: int | None, language_code: str | None
    ) -> dict[str, Any]:
        return {
            "location_code": location_code or self._location_code,
            "language_code": language_code or self._language_code,
        }

    async def _keyword_list(
        self,
        operation: str,
        endpoint: str,
        task: dict[str, Any],
        extract: Callable[[dict[str, Any]], str | None],
        limit: int,
    ) -> KeywordListResult:
        start_time = time.monotonic()
        try:
            response_data, request_id = await self._make_request(endpoint, [task])
            keywords = [
                keyword
                for keyword in map(extract, _collect_items(response_data))
                if keyword
            ][:limit]
        except DataForSEOError as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            dataforseo_logger.operation_complete(operation, duration_ms, False)
            return KeywordListResult(
                success=False,
                error=str(e),
                duration_ms=duration_ms,
                request_id=e.request_id,
            )

        cost = response_data.get("cost")
        duration_ms = (time.monotonic() - start_time) * 1000
        dataforseo_logger.response_body(endpoint, len(keywords), duration_ms, cost=cost)
        dataforseo_logger.operation_complete(
            operation, duration_ms, True, len(keywords), cost
        )
        return KeywordListResult(
            success=True,
            keywords=keywords,
            cost=cost,
            duration_ms=duration_ms,
            request_id=request_id,
        )

    async def get_keyword_suggestions(
        self,
        seed: str,
        limit: int = 10,
        location_code: int | None = None,
        language_code: str | None = None,
    ) -> KeywordListResult:
        """Lexical expansions of ``seed``, excluding the seed itself."""
        if not self._available:
            return KeywordListResult(success=False, error=NOT_CONFIGURED)
        if not seed or not seed.strip():
            return KeywordListResult(success=False, error="No seed keyword provided")

        task = {
            "keyword": seed.strip(),
            **self._target(location_code, language_code),
            "include_seed_keyword": False,
            "limit": limit,
        }
        return await self._keyword_list(
            "keyword_suggestions",
            SUGGESTIONS_ENDPOINT,
            task,
            lambda item: item.get("keyword"),
            limit,
        )

    async def get_ranked_keywords(
        self,
        domain: str,
        limit: int = 50,
        location_code: int | None = None,
        language_code: str | None = None,
    ) -> KeywordListResult:
        """Keywords ``domain`` ranks for, highest search volume first."""
        if not self._available:
            return KeywordListResult(success=False, error=NOT_CONFIGURED)
        if not domain or not domain.strip():
            return KeywordListResult(success=False, error="No domain provided")

        task = {
            "target": domain.strip(),
            **self._target(location_code, language_code),
            "limit": limit,
            "order_by": ["keyword_data.keyword_info.search_volume,desc"],
        }
        return await self._keyword_list(
            "ranked_keywords",
            RANKED_KEYWORDS_ENDPOINT,
            task,
            lambda item: (item.get("keyword_data") or {}).get("keyword"),
            limit,
        )

    async def get_keyword_overview(
        self,
        keywords: list[str],
        location_code: int | None = None,
        language_code: str | None = None,
    ) -> KeywordOverviewResult:
        """Volume, competition, CPC and search intent for many keywords.

        Lists longer than the per-task limit are split into several tasks of
        one request. The result succeeds if at least one task succeeds; failed
        tasks are reported in ``error``.
        """
        if not self._available:
            return KeywordOverviewResult(success=False, error=NOT_CONFIGURED)
        if not keywords:
            return KeywordOverviewResult(success=False, error="No keywords provided")

        start_time = time.monotonic()
        target = self._target(location_code, language_code)
        payload = [
            {
                "keywords": keywords[i : i + MAX_OVERVIEW_KEYWORDS_PER_TASK],
                **target,
                "include_serp_info": False,
            }
            for i in range(0, len(keywords), MAX_OVERVIEW_KEYWORDS_PER_TASK)
        ]

        try:
            response_data, request_id = await self._make_request(
                KEYWORD_OVERVIEW_ENDPOINT, payload
            )
        except DataForSEOError as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            dataforseo_logger.operation_complete("keyword_overview", duration_ms, False)
            return KeywordOverviewResult(
                success=False,
                error=str(e),
                duration_ms=duration_ms,
                request_id=e.request_id,
            )

        data: list[KeywordOverviewData] = []
        errors: list[str] = []
        tasks = response_data.get("tasks") or []
        for index, task in enumerate(tasks, start=1):
            error = _task_error(task)
            if error:
                errors.append(f"Task {index}/{len(tasks)}: {error}")
                continue
            data.extend(
                _overview_data(item) for item in _task_items(task) if item.get("keyword")
            )
        if not tasks:
            errors.append("Response contained no tasks")

        cost = response_data.get("cost")
        succeeded = len(errors) < len(tasks)
        duration_ms = (time.monotonic() - start_time) * 1000
        dataforseo_logger.response_body(
            KEYWORD_OVERVIEW_ENDPOINT, len(data), duration_ms, cost=cost
        )
        dataforseo_logger.operation_complete(
            "keyword_overview", duration_ms, succeeded, len(data), cost
        )
        return KeywordOverviewResult(
            success=succeeded,
            keywords=data,
            error="; ".join(errors) or None,
            cost=cost,
            duration_ms=duration_ms,
            request_id=request_id,
        )


# Global DataForSEO client instance
dataforseo_client: DataForSEOClient | None = None


async def init_dataforseo() -> DataForSEOClient:
    """Initialize the global DataForSEO client."""
    global dataforseo_client
    if dataforseo_client is None:
        dataforseo_client = DataForSEOClient()
        logger.info(
            "DataForSEO client initialized"
            if dataforseo_client.available
            else NOT_CONFIGURED
        )
    return dataforseo_client


async def close_dataforseo() -> None:
    global dataforseo_client
    if dataforseo_client:
        await dataforseo_client.close()
        dataforseo_client = None


async def get_dataforseo() -> DataForSEOClient:
    """Get the global DataForSEO client, creating it on first use."""
    if dataforseo_client is None:
        return await init_dataforseo()
    return dataforseo_client
