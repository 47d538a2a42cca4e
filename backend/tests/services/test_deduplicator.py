"""Tests for the deduplicator and merge precedence."""

from keyword_discovery.services.candidates import (
    SOURCE_PRIORITY,
    KeywordCandidate,
    KeywordSource,
    SearchIntent,
    canonical_key,
)
from keyword_discovery.services.deduplicator import deduplicate, merge_candidates


class TestCanonicalKey:
    def test_lowercases_and_trims(self) -> None:
        assert canonical_key("  Coffee Storage \t") == "coffee storage"


class TestDeduplicate:
    """One candidate per canonical key."""

    def test_case_and_whitespace_variants_collapse(self) -> None:
        items = [
            KeywordCandidate.create("Coffee Storage", KeywordSource.MANUAL),
            KeywordCandidate.create("coffee storage ", KeywordSource.MANUAL),
            KeywordCandidate.create("  COFFEE STORAGE", KeywordSource.COMPETITOR),
        ]

        result = deduplicate(items)

        assert len(result.candidates) == 1
        assert result.duplicates_merged == 2
        assert result.candidates[0].canonical_key == "coffee storage"

    def test_first_display_text_kept(self) -> None:
        items = [
            KeywordCandidate.create("Coffee Storage", KeywordSource.COMPETITOR),
            KeywordCandidate.create("coffee storage", KeywordSource.MANUAL),
        ]

        result = deduplicate(items)

        assert result.candidates[0].keyword == "Coffee Storage"

    def test_first_occurrence_order(self) -> None:
        items = [
            KeywordCandidate.create(k, KeywordSource.MANUAL)
            for k in ["b", "a", "B", "c", "a"]
        ]

        result = deduplicate(items)

        assert [c.keyword for c in result.candidates] == ["b", "a", "c"]

    def test_empty_keywords_dropped(self) -> None:
        items = [
            KeywordCandidate.create("   ", KeywordSource.MANUAL),
            KeywordCandidate.create("kw", KeywordSource.MANUAL),
        ]

        assert [c.keyword for c in deduplicate(items).candidates] == ["kw"]


class TestMergePrecedence:
    """Source precedence: manual > performance > competitor."""

    def test_priority_order_constant(self) -> None:
        assert SOURCE_PRIORITY == (
            KeywordSource.MANUAL,
            KeywordSource.PERFORMANCE,
            KeywordSource.COMPETITOR,
        )

    def test_manual_beats_earlier_competitor(self) -> None:
        items = [
            KeywordCandidate.create("kw", KeywordSource.COMPETITOR),
            KeywordCandidate.create("KW", KeywordSource.MANUAL),
        ]

        merged = deduplicate(items).candidates[0]

        assert merged.source == KeywordSource.MANUAL
        assert merged.keyword == "kw"

    def test_performance_beats_competitor_but_not_manual(self) -> None:
        manual_first = deduplicate(
            [
                KeywordCandidate.create("kw", KeywordSource.MANUAL),
                KeywordCandidate.create("kw", KeywordSource.PERFORMANCE),
            ]
        ).candidates[0]
        competitor_first = deduplicate(
            [
                KeywordCandidate.create("kw", KeywordSource.COMPETITOR),
                KeywordCandidate.create("kw", KeywordSource.PERFORMANCE),
            ]
        ).candidates[0]

        assert manual_first.source == KeywordSource.MANUAL
        assert competitor_first.source == KeywordSource.PERFORMANCE

    def test_performance_data_carried_over(self) -> None:
        manual = KeywordCandidate.create("kw", KeywordSource.MANUAL)
        performance = KeywordCandidate.create(
            "kw",
            KeywordSource.PERFORMANCE,
            clicks=12,
            impressions=400,
            ctr=0.03,
            position=8.0,
            intent=SearchIntent.COMMERCIAL,
        )

        merged = merge_candidates(manual, performance)

        assert merged.source == KeywordSource.MANUAL
        assert merged.clicks == 12
        assert merged.position == 8.0
        assert merged.intent == SearchIntent.COMMERCIAL
        # enrichment fields are not filled by the merge
        assert merged.search_volume is None
        assert merged.competition_level is None

    def test_existing_performance_data_not_replaced(self) -> None:
        first = KeywordCandidate.create(
            "kw", KeywordSource.PERFORMANCE, clicks=5, position=3.0
        )
        second = KeywordCandidate.create(
            "kw", KeywordSource.PERFORMANCE, clicks=99, position=50.0
        )

        merged = merge_candidates(first, second)

        assert merged.clicks == 5
        assert merged.position == 3.0
