"""PriorityScorer: weighted 0-3 score and opportunity category per keyword.

Sub-scores:
- position (weight 3): 11-20 -> 3 quick-win, 4-10 -> 2 position-boost,
  1-3 -> 1 long-term, unranked LOW competition with volume > 100 -> 1
  new-opportunity, anything else -> 0 long-term
- volume (weight 2): > 1000 -> 3, 100-1000 -> 2, else 1
- competition (weight 2): LOW 3, MEDIUM 2, HIGH/UNKNOWN 1
- business (weight 1): commercial/transactional 3, navigational 2, else 1

score = (3*position + 2*volume + 2*competition + business) / 8, rounded half up
to two decimals (5/8 -> 0.63)

Only a long-term category coming from the position branch can be promoted:
score >= 2.5 -> quick-win, score >= 2.0 -> position-boost.

Candidates are returned sorted by score, highest first. Equal scores keep
their input order.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from keyword_discovery.services.candidates import (
    CompetitionLevel,
    KeywordCandidate,
    PriorityCategory,
    SearchIntent,
)

POSITION_WEIGHT = 3
VOLUME_WEIGHT = 2
COMPETITION_WEIGHT = 2
BUSINESS_WEIGHT = 1
TOTAL_WEIGHT = POSITION_WEIGHT + VOLUME_WEIGHT + COMPETITION_WEIGHT + BUSINESS_WEIGHT

QUICK_WIN_THRESHOLD = 2.5
POSITION_BOOST_THRESHOLD = 2.0

MIN_SCORE = 0.0
MAX_SCORE = 3.0
SCORE_PRECISION = Decimal("0.01")


@dataclass(frozen=True)
class PositionAssessment:
    score: int
    category: PriorityCategory
    label: str


@dataclass(frozen=True)
class ScoreBreakdown:
    position: PositionAssessment
    volume: int
    competition: int
    business: int
    score: float
    category: PriorityCategory


def assess_position(candidate: KeywordCandidate) -> PositionAssessment:
    position = candidate.position
    if position is not None and position > 0:
        if 11 <= position <= 20:
            return PositionAssessment(
                3, PriorityCategory.QUICK_WIN, "Page 1 Breakthrough"
            )
        if 4 <= position <= 10:
            return PositionAssessment(
                2, PriorityCategory.POSITION_BOOST, "Top 3 Position"
            )
        if 1 <= position <= 3:
            return PositionAssessment(1, PriorityCategory.LONG_TERM, "Maintain Ranking")
    elif (
        candidate.competition_level == CompetitionLevel.LOW
        and (candidate.search_volume or 0) > 100
    ):
        return PositionAssessment(
            1, PriorityCategory.NEW_OPPORTUNITY, "Ranking Opportunity"
        )
    return PositionAssessment(0, PriorityCategory.LONG_TERM, "Content Creation")


def volume_score(search_volume: int | None) -> int:
    volume = search_volume or 0
    if volume > 1000:
        return 3
    if volume >= 100:
        return 2
    return 1


def competition_score(level: CompetitionLevel | None) -> int:
    if level == CompetitionLevel.LOW:
        return 3
    if level == CompetitionLevel.MEDIUM:
        return 2
    return 1


def business_score(intent: SearchIntent | None) -> int:
    if intent in (SearchIntent.COMMERCIAL, SearchIntent.TRANSACTIONAL):
        return 3
    if intent == SearchIntent.NAVIGATIONAL:
        return 2
    return 1


def score_breakdown(candidate: KeywordCandidate) -> ScoreBreakdown:
    position = assess_position(candidate)
    volume = volume_score(candidate.search_volume)
    competition = competition_score(candidate.competition_level)
    business = business_score(candidate.intent)

    weighted = (
        position.score * POSITION_WEIGHT
        + volume * VOLUME_WEIGHT
        + competition * COMPETITION_WEIGHT
        + business * BUSINESS_WEIGHT
    )
    score = float(
        (Decimal(weighted) / TOTAL_WEIGHT).quantize(SCORE_PRECISION, ROUND_HALF_UP)
    )
    score = min(MAX_SCORE, max(MIN_SCORE, score))

    category = position.category
    if category == PriorityCategory.LONG_TERM:
        if score >= QUICK_WIN_THRESHOLD:
            category = PriorityCategory.QUICK_WIN
        elif score >= POSITION_BOOST_THRESHOLD:
            category = PriorityCategory.POSITION_BOOST

    return ScoreBreakdown(
        position=position,
        volume=volume,
        competition=competition,
        business=business,
        score=score,
        category=category,
    )


def score_candidate(candidate: KeywordCandidate) -> KeywordCandidate:
    breakdown = score_breakdown(candidate)
    return candidate.with_updates(
        priority_score=breakdown.score,
        priority_category=breakdown.category,
        opportunity_type=breakdown.position.label,
    )


def score_and_sort(candidates: list[KeywordCandidate]) -> list[KeywordCandidate]:
    """Score every candidate and sort by score descending (stable)."""
    scored = [score_candidate(c) for c in candidates]
    return sorted(scored, key=lambda c: -(c.priority_score or 0.0))
