"""PerformanceCrossReferencer: attach live ranking data to every candidate.

Runs after enrichment with a wide performance fetch (same property and date
window as collection, much larger row cap) so that manual and competitor
keywords also get ranking context. A match by canonical key overwrites
clicks, impressions, CTR and position and sets ``has_client_ranking``.

If the wide fetch does not run or fails, candidates keep whatever
performance data the narrow fetch gave them, and those with a narrow position
are flagged ``has_client_ranking``.
"""

import asyncio
import time

from keyword_discovery.core.logging import discovery_logger, get_logger
from keyword_discovery.services.candidates import (
    KeywordCandidate,
    PhaseResult,
    canonical_key,
)
from keyword_discovery.services.discovery_errors import (
    ConfigurationError,
    CrossReferenceError,
    ItemFailure,
)
from keyword_discovery.services.providers import PerformanceDataProvider, PerformanceRow
from keyword_discovery.services.source_collector import PerformanceQuery

logger = get_logger(__name__)

PHASE = "cross_reference"

DEFAULT_WIDE_ROW_LIMIT = 2000


def _keep_narrow_data(candidates: list[KeywordCandidate]) -> list[KeywordCandidate]:
    return [
        candidate.with_updates(has_client_ranking=True)
        if candidate.position is not None and not candidate.has_client_ranking
        else candidate
        for candidate in candidates
    ]


class PerformanceCrossReferencer:
    def __init__(
        self,
        provider: PerformanceDataProvider | None = None,
        timeout: float | None = None,
    ) -> None:
        self._provider = provider
        self._timeout = timeout

    async def cross_reference(
        self,
        candidates: list[KeywordCandidate],
        query: PerformanceQuery | None,
    ) -> PhaseResult[KeywordCandidate]:
        """Match candidates against the wide performance fetch.

        Args:
            candidates: Enriched candidates
            query: Wide fetch parameters, or None when no property is known

        Returns:
            PhaseResult with updated candidates (unchanged on failure)
        """
        if not candidates:
            return PhaseResult()

        if query is None or self._provider is None:
            reason = (
                "No performance data provider configured"
                if self._provider is None
                else "No performance property available"
            )
            discovery_logger.source_unavailable("performance", reason)
            error = ConfigurationError(reason, source="performance")
            return PhaseResult(
                successes=_keep_narrow_data(candidates),
                failures=[ItemFailure.from_exception(PHASE, "performance", error)],
            )

        start_time = time.monotonic()
        try:
            rows = await self._fetch(query)
        except Exception as e:
            if isinstance(e, TimeoutError):
                message = f"Wide performance fetch timed out after {self._timeout}s"
            else:
                message = f"{type(e).__name__}: {e}"
            error = CrossReferenceError(message, property_id=query.property_id)
            discovery_logger.item_failure(
                PHASE, query.property_id, type(e).__name__, message
            )
            return PhaseResult(
                successes=_keep_narrow_data(candidates),
                failures=[
                    ItemFailure.from_exception(PHASE, query.property_id, error)
                ],
            )

        by_key: dict[str, PerformanceRow] = {}
        for row in rows:
            by_key.setdefault(canonical_key(row.keyword), row)

        updated: list[KeywordCandidate] = []
        matched = 0
        for candidate in candidates:
            row = by_key.get(candidate.canonical_key)
            if row is None:
                updated.append(candidate)
                continue
            matched += 1
            updated.append(
                candidate.with_updates(
                    clicks=row.clicks,
                    impressions=row.impressions,
                    ctr=row.ctr,
                    position=row.position,
                    has_client_ranking=True,
                )
            )

        logger.debug(
            "Performance cross-reference finished",
            extra={
                "property_id": query.property_id,
                "rows": len(rows),
                "candidates": len(candidates),
                "matched": matched,
                "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return PhaseResult(successes=updated)

    async def _fetch(self, query: PerformanceQuery) -> list[PerformanceRow]:
        assert self._provider is not None
        fetch = self._provider.get_queries(
            query.property_id, query.date_start, query.date_end, query.limit
        )
        if self._timeout:
            return await asyncio.wait_for(fetch, timeout=self._timeout)
        return await fetch
