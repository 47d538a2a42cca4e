"""Keyword candidate value type shared by every pipeline phase.

A ``KeywordCandidate`` is immutable. Phases never mutate a candidate; they
build an updated copy with ``dataclasses.replace`` and return new lists.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Generic, TypeVar

from keyword_discovery.services.discovery_errors import ItemFailure

T = TypeVar("T")


class KeywordSource(str, Enum):
    """Where a candidate was first collected from."""

    MANUAL = "manual"
    PERFORMANCE = "performance"
    COMPETITOR = "competitor"


class CompetitionLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "CompetitionLevel":
        """Map a provider value onto a level, UNKNOWN when unrecognised."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN


class SearchIntent(str, Enum):
    INFORMATIONAL = "informational"
    NAVIGATIONAL = "navigational"
    TRANSACTIONAL = "transactional"
    COMMERCIAL = "commercial"

    @classmethod
    def parse(cls, value: str | None) -> "SearchIntent":
        """Map a provider value onto an intent, informational when unrecognised."""
        if not value:
            return cls.INFORMATIONAL
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.INFORMATIONAL


class PriorityCategory(str, Enum):
    QUICK_WIN = "quick-win"
    POSITION_BOOST = "position-boost"
    NEW_OPPORTUNITY = "new-opportunity"
    LONG_TERM = "long-term"


# Precedence when the same canonical key arrives from different sources.
# Lower index wins.
SOURCE_PRIORITY: tuple[KeywordSource, ...] = (
    KeywordSource.MANUAL,
    KeywordSource.PERFORMANCE,
    KeywordSource.COMPETITOR,
)

# Enrichment values used when the metadata provider has nothing for a keyword
DEFAULT_SEARCH_VOLUME = 0
DEFAULT_COMPETITION_LEVEL = CompetitionLevel.UNKNOWN
DEFAULT_CPC = 0.0
DEFAULT_INTENT = SearchIntent.INFORMATIONAL

QUICK_WIN_MIN_VOLUME = 100


def canonical_key(keyword: str) -> str:
    """Identity of a keyword within one run: trimmed and lowercased."""
    return keyword.strip().lower()


def source_rank(source: KeywordSource) -> int:
    return SOURCE_PRIORITY.index(source)


@dataclass(frozen=True)
class KeywordCandidate:
    """A keyword moving through the discovery pipeline.

    Attributes:
        canonical_key: Trimmed, lowercased keyword text (run-unique identity)
        keyword: Display text from the first occurrence
        source: Provenance, kept through every later phase
        search_volume: Monthly volume (enrichment)
        competition_level: LOW/MEDIUM/HIGH/UNKNOWN (enrichment)
        cpc: Cost per click (enrichment)
        intent: Search intent (enrichment)
        clicks: Client clicks (performance)
        impressions: Client impressions (performance)
        ctr: Client click-through rate (performance)
        position: Client average position, None when the client does not rank
        has_client_ranking: Set when performance data shows the client ranks
        priority_score: Weighted score in [0, 3] (scoring)
        priority_category: Opportunity category (scoring)
        opportunity_type: Human label for the category (scoring)
    """

    canonical_key: str
    keyword: str
    source: KeywordSource
    search_volume: int | None = None
    competition_level: CompetitionLevel | None = None
    cpc: float | None = None
    intent: SearchIntent | None = None
    clicks: int | None = None
    impressions: int | None = None
    ctr: float | None = None
    position: float | None = None
    has_client_ranking: bool = False
    priority_score: float | None = None
    priority_category: PriorityCategory | None = None
    opportunity_type: str | None = None

    @classmethod
    def create(
        cls, keyword: str, source: KeywordSource, **fields: Any
    ) -> "KeywordCandidate":
        """Build a candidate from raw keyword text."""
        return cls(
            canonical_key=canonical_key(keyword),
            keyword=keyword.strip(),
            source=source,
            **fields,
        )

    @property
    def has_performance_data(self) -> bool:
        return any(
            value is not None
            for value in (self.clicks, self.impressions, self.ctr, self.position)
        )

    @property
    def is_quick_win(self) -> bool:
        """Volume above 100 with LOW competition, independent of category."""
        return (
            self.search_volume or 0
        ) > QUICK_WIN_MIN_VOLUME and self.competition_level == CompetitionLevel.LOW

    def with_updates(self, **changes: Any) -> "KeywordCandidate":
        return replace(self, **changes)


@dataclass
class PhaseResult(Generic[T]):
    """Output of one pipeline phase: what succeeded and what failed."""

    successes: list[T] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failures)
