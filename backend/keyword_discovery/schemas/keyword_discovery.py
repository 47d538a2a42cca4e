"""Pydantic schemas for keyword discovery.

Schemas handed to and from the surrounding application:
- KeywordDiscoveryRequest: validated inputs of a discovery run
- KeywordCandidateResponse: one scored keyword
- DiscoveryStatsResponse: aggregate counters for the run
- KeywordDiscoveryResponse: full run result, including recorded failures
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from keyword_discovery.services.candidates import KeywordCandidate
from keyword_discovery.services.keyword_discovery import (
    DiscoveryRequest,
    DiscoveryResult,
    DiscoveryStats,
)
from keyword_discovery.services.providers import BrandTerm

# Search Console returns at most 25,000 rows per query
MAX_ROW_LIMIT = 25000


def _clean_strings(values: list[str]) -> list[str]:
    cleaned = []
    for value in values:
        if value and isinstance(value, str):
            value = value.strip()
            if value:
                cleaned.append(value)
    return cleaned


# =============================================================================
# REQUEST
# =============================================================================


class BrandTermSchema(BaseModel):
    """A brand term to exclude from results."""

    term: str = Field(..., min_length=1, max_length=200, description="Brand term")
    is_regex: bool = Field(
        False, description="Match the term as a case-insensitive regex"
    )

    @model_validator(mode="after")
    def validate_term(self) -> "BrandTermSchema":
        if not self.term.strip():
            raise ValueError("Brand term cannot be empty")
        # regex whitespace is part of the pattern
        if not self.is_regex:
            self.term = self.term.strip()
        return self


class KeywordDiscoveryRequest(BaseModel):
    """Request schema for running keyword discovery."""

    seeds: list[str] = Field(
        default_factory=list,
        max_length=100,
        description="Manual seed keywords (each is also expanded)",
        examples=[["coffee storage", "airtight containers"]],
    )
    competitors: list[str] = Field(
        default_factory=list,
        max_length=20,
        description="Competitor domains to pull ranked keywords from",
        examples=[["competitor.com"]],
    )
    client_id: str | None = Field(
        None, description="Client whose stored brand terms are applied"
    )
    property_id: str | None = Field(
        None,
        description="Search Console property (auto-detected from client_domain "
        "when omitted)",
        examples=["sc-domain:example.com", "https://www.example.com/"],
    )
    client_domain: str | None = Field(
        None, description="Client website domain", examples=["example.com"]
    )
    date_start: date | None = Field(
        None, description="Start of the performance window (default: 90 days ago)"
    )
    date_end: date | None = Field(
        None, description="End of the performance window (default: today)"
    )
    brand_terms: list[BrandTermSchema] = Field(
        default_factory=list, description="Additional brand terms for this run"
    )
    narrow_limit: int | None = Field(
        None, ge=1, le=MAX_ROW_LIMIT, description="Rows in the early performance fetch"
    )
    wide_limit: int | None = Field(
        None,
        ge=1,
        le=MAX_ROW_LIMIT,
        description="Rows in the cross-reference performance fetch",
    )

    @field_validator("seeds", "competitors")
    @classmethod
    def validate_strings(cls, v: list[str]) -> list[str]:
        """Trim entries and drop empty ones."""
        return _clean_strings(v)

    @field_validator("property_id", "client_domain", "client_id")
    @classmethod
    def validate_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def validate_date_window(self) -> "KeywordDiscoveryRequest":
        if self.date_start and self.date_end and self.date_start > self.date_end:
            raise ValueError("date_start must be on or before date_end")
        return self

    def to_discovery_request(self, run_id: str | None = None) -> DiscoveryRequest:
        return DiscoveryRequest(
            seeds=list(self.seeds),
            competitors=list(self.competitors),
            client_id=self.client_id,
            property_id=self.property_id,
            client_domain=self.client_domain,
            date_start=self.date_start.isoformat() if self.date_start else None,
            date_end=self.date_end.isoformat() if self.date_end else None,
            brand_terms=[
                BrandTerm(term=t.term, is_regex=t.is_regex) for t in self.brand_terms
            ],
            narrow_limit=self.narrow_limit,
            wide_limit=self.wide_limit,
            run_id=run_id,
        )


# =============================================================================
# RESPONSE
# =============================================================================


class KeywordCandidateResponse(BaseModel):
    """Response schema for a single discovered keyword."""

    model_config = ConfigDict(from_attributes=True)

    keyword: str = Field(..., description="Display text of the keyword")
    canonical_key: str = Field(..., description="Lowercased, trimmed identity")
    source: str = Field(..., description="manual, performance or competitor")
    search_volume: int | None = Field(None, description="Monthly search volume")
    competition_level: str | None = Field(
        None, description="LOW, MEDIUM, HIGH or UNKNOWN"
    )
    cpc: float | None = Field(None, description="Cost per click")
    intent: str | None = Field(None, description="Search intent")
    clicks: int | None = Field(None, description="Client clicks")
    impressions: int | None = Field(None, description="Client impressions")
    ctr: float | None = Field(None, description="Client click-through rate")
    position: float | None = Field(None, description="Client average position")
    has_client_ranking: bool = Field(
        False, description="Whether the client currently ranks for the keyword"
    )
    priority_score: float = Field(..., ge=0, le=3, description="Weighted score 0-3")
    priority_category: str = Field(..., description="Opportunity category")
    opportunity_type: str = Field(..., description="Human label for the category")
    is_quick_win: bool = Field(
        False, description="Volume above 100 with LOW competition"
    )

    @classmethod
    def from_candidate(cls, candidate: KeywordCandidate) -> "KeywordCandidateResponse":
        return cls(
            keyword=candidate.keyword,
            canonical_key=candidate.canonical_key,
            source=candidate.source.value,
            search_volume=candidate.search_volume,
            competition_level=candidate.competition_level.value
            if candidate.competition_level
            else None,
            cpc=candidate.cpc,
            intent=candidate.intent.value if candidate.intent else None,
            clicks=candidate.clicks,
            impressions=candidate.impressions,
            ctr=candidate.ctr,
            position=candidate.position,
            has_client_ranking=candidate.has_client_ranking,
            priority_score=candidate.priority_score or 0.0,
            priority_category=candidate.priority_category.value
            if candidate.priority_category
            else "long-term",
            opportunity_type=candidate.opportunity_type or "",
            is_quick_win=candidate.is_quick_win,
        )


class DiscoveryStatsResponse(BaseModel):
    """Aggregate counters for a discovery run."""

    model_config = ConfigDict(from_attributes=True)

    total: int = Field(0, description="Keywords in the final result")
    branded_removed: int = Field(0, description="Keywords removed as branded")
    commercial: int = Field(0, description="Keywords with commercial intent")
    informational: int = Field(0, description="Keywords with informational intent")
    quick_wins: int = Field(
        0, description="Keywords with volume above 100 and LOW competition"
    )
    raw_collected: int = Field(0, description="Keywords collected before filtering")
    duplicates_merged: int = Field(0, description="Duplicate records merged")
    categories: dict[str, int] = Field(
        default_factory=dict, description="Keyword count per priority category"
    )

    @classmethod
    def from_stats(cls, stats: DiscoveryStats) -> "DiscoveryStatsResponse":
        return cls.model_validate(stats)


class ItemFailureResponse(BaseModel):
    """A recorded, non-fatal failure."""

    model_config = ConfigDict(from_attributes=True)

    phase: str = Field(..., description="Pipeline phase")
    item: str = Field(..., description="Seed, domain, property or batch that failed")
    error_type: str = Field(..., description="Error class name")
    message: str = Field(..., description="Error message")


class KeywordDiscoveryResponse(BaseModel):
    """Response schema for a completed discovery run."""

    run_id: str = Field(..., description="Run correlation id")
    keywords: list[KeywordCandidateResponse] = Field(
        default_factory=list, description="Scored keywords, highest score first"
    )
    stats: DiscoveryStatsResponse = Field(..., description="Aggregate counters")
    failures: list[ItemFailureResponse] = Field(
        default_factory=list, description="Non-fatal failures during the run"
    )
    property_id: str | None = Field(
        None, description="Search Console property used for performance data"
    )
    phase_durations_ms: dict[str, float] = Field(
        default_factory=dict, description="Duration of each phase"
    )
    duration_ms: float = Field(..., description="Total run time in milliseconds")

    @classmethod
    def from_result(cls, result: DiscoveryResult) -> "KeywordDiscoveryResponse":
        return cls(
            run_id=result.run_id,
            keywords=[
                KeywordCandidateResponse.from_candidate(c) for c in result.candidates
            ],
            stats=DiscoveryStatsResponse.from_stats(result.stats),
            failures=[ItemFailureResponse.model_validate(f) for f in result.failures],
            property_id=result.property_id,
            phase_durations_ms=dict(result.phase_durations_ms),
            duration_ms=round(result.duration_ms, 2),
        )
