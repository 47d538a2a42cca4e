"""Services layer - Keyword discovery pipeline.

Each phase lives in its own module; ``KeywordDiscoveryService`` runs them
in order.
"""

from keyword_discovery.services.brand_filter import BrandFilter, BrandFilterResult
from keyword_discovery.services.candidates import (
    SOURCE_PRIORITY,
    CompetitionLevel,
    KeywordCandidate,
    KeywordSource,
    PhaseResult,
    PriorityCategory,
    SearchIntent,
    canonical_key,
)
from keyword_discovery.services.cross_reference import PerformanceCrossReferencer
from keyword_discovery.services.deduplicator import DedupResult, deduplicate
from keyword_discovery.services.discovery_errors import (
    ConfigurationError,
    CrossReferenceError,
    DiscoveryCancelledError,
    EnrichmentError,
    ItemFailure,
    KeywordDiscoveryError,
    NoUsableSourcesError,
    SourceFetchError,
)
from keyword_discovery.services.enrichment import EnrichmentBatcher
from keyword_discovery.services.keyword_discovery import (
    DiscoveryRequest,
    DiscoveryResult,
    DiscoveryStats,
    KeywordDiscoveryService,
    get_keyword_discovery_service,
)
from keyword_discovery.services.priority_scorer import (
    score_and_sort,
    score_breakdown,
    score_candidate,
)
from keyword_discovery.services.providers import (
    BrandTerm,
    KeywordMetadata,
    PerformanceRow,
    StaticBrandTermStore,
)
from keyword_discovery.services.source_collector import (
    PerformanceQuery,
    SourceCollector,
)

__all__ = [
    # Candidates
    "SOURCE_PRIORITY",
    "CompetitionLevel",
    "KeywordCandidate",
    "KeywordSource",
    "PhaseResult",
    "PriorityCategory",
    "SearchIntent",
    "canonical_key",
    # Errors
    "ConfigurationError",
    "CrossReferenceError",
    "DiscoveryCancelledError",
    "EnrichmentError",
    "ItemFailure",
    "KeywordDiscoveryError",
    "NoUsableSourcesError",
    "SourceFetchError",
    # Providers
    "BrandTerm",
    "KeywordMetadata",
    "PerformanceRow",
    "StaticBrandTermStore",
    # Phases
    "BrandFilter",
    "BrandFilterResult",
    "DedupResult",
    "EnrichmentBatcher",
    "PerformanceCrossReferencer",
    "PerformanceQuery",
    "SourceCollector",
    "deduplicate",
    "score_and_sort",
    "score_breakdown",
    "score_candidate",
    # Orchestrator
    "DiscoveryRequest",
    "DiscoveryResult",
    "DiscoveryStats",
    "KeywordDiscoveryService",
    "get_keyword_discovery_service",
]
