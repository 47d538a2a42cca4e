"""EnrichmentBatcher: bulk volume/competition/CPC/intent lookup.

All unique keywords go to the metadata provider in a single bulk call.
Results map back by canonical key. Only ``search_volume``,
``competition_level``, ``cpc`` and ``intent`` are ever written; performance
fields from the narrow fetch are left untouched.

If the provider is missing or the bulk call fails, the run continues and
every candidate gets the default enrichment values
(volume 0, competition UNKNOWN, CPC 0, intent informational).
"""

import time

from keyword_discovery.core.logging import discovery_logger, get_logger
from keyword_discovery.services.candidates import (
    DEFAULT_COMPETITION_LEVEL,
    DEFAULT_CPC,
    DEFAULT_INTENT,
    DEFAULT_SEARCH_VOLUME,
    CompetitionLevel,
    KeywordCandidate,
    PhaseResult,
    SearchIntent,
    canonical_key,
)
from keyword_discovery.services.discovery_errors import (
    ConfigurationError,
    EnrichmentError,
    ItemFailure,
)
from keyword_discovery.services.providers import BulkMetadataProvider, KeywordMetadata

logger = get_logger(__name__)

PHASE = "enrichment"


def apply_defaults(candidate: KeywordCandidate) -> KeywordCandidate:
    """Default enrichment values; an intent already known is kept."""
    return candidate.with_updates(
        search_volume=DEFAULT_SEARCH_VOLUME,
        competition_level=DEFAULT_COMPETITION_LEVEL,
        cpc=DEFAULT_CPC,
        intent=candidate.intent or DEFAULT_INTENT,
    )


def apply_metadata(
    candidate: KeywordCandidate, metadata: KeywordMetadata
) -> KeywordCandidate:
    return candidate.with_updates(
        search_volume=metadata.search_volume
        if metadata.search_volume is not None
        else DEFAULT_SEARCH_VOLUME,
        competition_level=CompetitionLevel.parse(metadata.competition_level),
        cpc=metadata.cpc if metadata.cpc is not None else DEFAULT_CPC,
        intent=SearchIntent.parse(metadata.intent)
        if metadata.intent
        else candidate.intent or DEFAULT_INTENT,
    )


class EnrichmentBatcher:
    """Fills enrichment fields for every candidate with one bulk call."""

    def __init__(self, provider: BulkMetadataProvider | None = None) -> None:
        self._provider = provider

    async def enrich(
        self, candidates: list[KeywordCandidate]
    ) -> PhaseResult[KeywordCandidate]:
        if not candidates:
            return PhaseResult()

        if self._provider is None:
            error = ConfigurationError(
                "No metadata provider configured", source="keyword_metadata"
            )
            discovery_logger.source_unavailable("keyword_metadata", str(error))
            return PhaseResult(
                successes=[apply_defaults(c) for c in candidates],
                failures=[ItemFailure.from_exception(PHASE, "keyword_metadata", error)],
            )

        keywords = [c.keyword for c in candidates]
        start_time = time.monotonic()

        try:
            metadata = await self._provider.get_metadata(keywords)
        except Exception as e:
            error = EnrichmentError(
                f"{type(e).__name__}: {e}", keyword_count=len(keywords)
            )
            logger.error(
                "Bulk enrichment failed, using default values",
                extra={
                    "keyword_count": len(keywords),
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
                exc_info=True,
            )
            return PhaseResult(
                successes=[apply_defaults(c) for c in candidates],
                failures=[ItemFailure.from_exception(PHASE, "bulk_metadata", error)],
            )

        by_key: dict[str, KeywordMetadata] = {}
        for item in metadata:
            key = canonical_key(item.keyword)
            # first answer for a key wins
            by_key.setdefault(key, item)

        enriched: list[KeywordCandidate] = []
        matched = 0
        for candidate in candidates:
            item = by_key.get(candidate.canonical_key)
            if item is None:
                enriched.append(apply_defaults(candidate))
            else:
                enriched.append(apply_metadata(candidate, item))
                matched += 1

        logger.debug(
            "Bulk enrichment finished",
            extra={
                "keyword_count": len(keywords),
                "matched": matched,
                "unmatched": len(keywords) - matched,
                "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return PhaseResult(successes=enriched)
