"""Tests for PriorityScorer.

Covers the position branches, the sub-scores, the weighted formula, the
category override from long-term only, and the stable descending sort.
"""

import itertools

import pytest

from keyword_discovery.services.candidates import (
    CompetitionLevel,
    KeywordCandidate,
    KeywordSource,
    PriorityCategory,
    SearchIntent,
)
from keyword_discovery.services.priority_scorer import (
    assess_position,
    business_score,
    competition_score,
    score_and_sort,
    score_breakdown,
    score_candidate,
    volume_score,
)


def candidate(
    keyword: str = "coffee storage",
    position: float | None = None,
    volume: int | None = 0,
    competition: CompetitionLevel | None = CompetitionLevel.UNKNOWN,
    intent: SearchIntent | None = SearchIntent.INFORMATIONAL,
) -> KeywordCandidate:
    return KeywordCandidate.create(
        keyword,
        KeywordSource.MANUAL,
        position=position,
        search_volume=volume,
        competition_level=competition,
        intent=intent,
    )


# ---------------------------------------------------------------------------
# Documented Examples
# ---------------------------------------------------------------------------


class TestDocumentedExamples:
    """Worked examples of the scoring formula."""

    def test_page_two_keyword_is_quick_win(self) -> None:
        """position 15, volume 500, LOW, commercial -> 2.75 quick-win."""
        breakdown = score_breakdown(
            candidate(
                position=15,
                volume=500,
                competition=CompetitionLevel.LOW,
                intent=SearchIntent.COMMERCIAL,
            )
        )

        assert breakdown.position.score == 3
        assert breakdown.volume == 2
        assert breakdown.competition == 3
        assert breakdown.business == 3
        assert breakdown.score == 2.75
        assert breakdown.category == PriorityCategory.QUICK_WIN
        assert breakdown.position.label == "Page 1 Breakthrough"

    def test_unranked_low_competition_is_new_opportunity(self) -> None:
        """no position, LOW, volume 150, informational -> 1.75, no override."""
        scored = score_candidate(
            candidate(
                position=None,
                volume=150,
                competition=CompetitionLevel.LOW,
                intent=SearchIntent.INFORMATIONAL,
            )
        )

        assert scored.priority_score == 1.75
        assert scored.priority_category == PriorityCategory.NEW_OPPORTUNITY
        assert scored.opportunity_type == "Ranking Opportunity"

    def test_defaults_score_as_content_creation(self) -> None:
        """Defaulted enrichment values still produce a score."""
        scored = score_candidate(
            candidate(volume=0, competition=CompetitionLevel.UNKNOWN)
        )

        # (0*3 + 1*2 + 1*2 + 1*1) / 8
        assert scored.priority_score == 0.63
        assert scored.priority_category == PriorityCategory.LONG_TERM
        assert scored.opportunity_type == "Content Creation"

    def test_eighths_round_half_up(self) -> None:
        """(0*3 + 2*2 + 2*2 + 1*1) / 8 = 1.125 is stored as 1.13."""
        scored = score_candidate(
            candidate(volume=500, competition=CompetitionLevel.MEDIUM)
        )

        assert scored.priority_score == 1.13


# ---------------------------------------------------------------------------
# Position Branches
# ---------------------------------------------------------------------------


class TestAssessPosition:
    @pytest.mark.parametrize(
        ("position", "score", "category", "label"),
        [
            (11, 3, PriorityCategory.QUICK_WIN, "Page 1 Breakthrough"),
            (20, 3, PriorityCategory.QUICK_WIN, "Page 1 Breakthrough"),
            (4, 2, PriorityCategory.POSITION_BOOST, "Top 3 Position"),
            (10, 2, PriorityCategory.POSITION_BOOST, "Top 3 Position"),
            (1, 1, PriorityCategory.LONG_TERM, "Maintain Ranking"),
            (3, 1, PriorityCategory.LONG_TERM, "Maintain Ranking"),
            (35, 0, PriorityCategory.LONG_TERM, "Content Creation"),
        ],
    )
    def test_ranked_positions(
        self, position: float, score: int, category: PriorityCategory, label: str
    ) -> None:
        result = assess_position(candidate(position=position))

        assert result.score == score
        assert result.category == category
        assert result.label == label

    def test_ranked_keyword_never_new_opportunity(self) -> None:
        """The new-opportunity branch requires no position at all."""
        result = assess_position(
            candidate(position=45, volume=5000, competition=CompetitionLevel.LOW)
        )

        assert result.category == PriorityCategory.LONG_TERM
        assert result.score == 0

    def test_unranked_needs_volume_over_100(self) -> None:
        result = assess_position(
            candidate(volume=100, competition=CompetitionLevel.LOW)
        )

        assert result.category == PriorityCategory.LONG_TERM


class TestSubScores:
    @pytest.mark.parametrize(
        ("volume", "expected"),
        [(None, 1), (0, 1), (99, 1), (100, 2), (1000, 2), (1001, 3)],
    )
    def test_volume_score(self, volume: int | None, expected: int) -> None:
        assert volume_score(volume) == expected

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (CompetitionLevel.LOW, 3),
            (CompetitionLevel.MEDIUM, 2),
            (CompetitionLevel.HIGH, 1),
            (CompetitionLevel.UNKNOWN, 1),
            (None, 1),
        ],
    )
    def test_competition_score(
        self, level: CompetitionLevel | None, expected: int
    ) -> None:
        assert competition_score(level) == expected

    @pytest.mark.parametrize(
        ("intent", "expected"),
        [
            (SearchIntent.COMMERCIAL, 3),
            (SearchIntent.TRANSACTIONAL, 3),
            (SearchIntent.NAVIGATIONAL, 2),
            (SearchIntent.INFORMATIONAL, 1),
            (None, 1),
        ],
    )
    def test_business_score(self, intent: SearchIntent | None, expected: int) -> None:
        assert business_score(intent) == expected


# ---------------------------------------------------------------------------
# Category Override
# ---------------------------------------------------------------------------


class TestCategoryOverride:
    def test_long_term_promoted_to_position_boost(self) -> None:
        """Top-3 ranking with strong metrics: (3 + 6 + 6 + 3) / 8 = 2.25."""
        scored = score_candidate(
            candidate(
                position=2,
                volume=5000,
                competition=CompetitionLevel.LOW,
                intent=SearchIntent.COMMERCIAL,
            )
        )

        assert scored.priority_score == 2.25
        assert scored.priority_category == PriorityCategory.POSITION_BOOST
        # label still describes the position branch
        assert scored.opportunity_type == "Maintain Ranking"

    def test_position_boost_not_promoted(self) -> None:
        """(6 + 6 + 6 + 3) / 8 = 2.625 -> 2.63, but category was set explicitly."""
        scored = score_candidate(
            candidate(
                position=5,
                volume=5000,
                competition=CompetitionLevel.LOW,
                intent=SearchIntent.COMMERCIAL,
            )
        )

        assert scored.priority_score == 2.63
        assert scored.priority_category == PriorityCategory.POSITION_BOOST

    def test_low_score_stays_long_term(self) -> None:
        scored = score_candidate(
            candidate(position=2, volume=10, competition=CompetitionLevel.HIGH)
        )

        assert scored.priority_category == PriorityCategory.LONG_TERM


# ---------------------------------------------------------------------------
# Bounds and Sorting
# ---------------------------------------------------------------------------


class TestBounds:
    def test_score_always_within_range(self) -> None:
        positions = [None, 1, 3, 4, 10, 11, 20, 21, 80]
        volumes = [None, 0, 50, 100, 150, 1000, 50000]
        levels = list(CompetitionLevel) + [None]
        intents = list(SearchIntent) + [None]

        for position, volume, level, intent in itertools.product(
            positions, volumes, levels, intents
        ):
            scored = score_candidate(
                candidate(
                    position=position,
                    volume=volume,
                    competition=level,
                    intent=intent,
                )
            )
            assert 0.0 <= scored.priority_score <= 3.0
            assert scored.priority_category in set(PriorityCategory)


class TestScoreAndSort:
    def test_sorted_descending(self) -> None:
        low = candidate("low", volume=0)
        high = candidate(
            "high",
            position=15,
            volume=500,
            competition=CompetitionLevel.LOW,
            intent=SearchIntent.COMMERCIAL,
        )

        result = score_and_sort([low, high])

        assert [c.keyword for c in result] == ["high", "low"]

    def test_ties_keep_input_order(self) -> None:
        tied = [candidate(f"kw {i}") for i in range(6)]

        result = score_and_sort(tied)

        assert len({c.priority_score for c in result}) == 1
        assert [c.keyword for c in result] == [f"kw {i}" for i in range(6)]

    def test_input_candidates_not_mutated(self) -> None:
        original = candidate()

        score_and_sort([original])

        assert original.priority_score is None
        assert original.priority_category is None
