"""BrandFilter: drops branded queries before enrichment.

Literal terms match as case-insensitive substrings. Regex terms compile
case-insensitively; a pattern that fails to compile falls back to a
case-insensitive substring match on the raw term.
"""

import re
from dataclasses import dataclass

from keyword_discovery.core.logging import get_logger
from keyword_discovery.services.candidates import KeywordCandidate
from keyword_discovery.services.providers import BrandTerm

logger = get_logger(__name__)


@dataclass
class BrandFilterResult:
    """Kept candidates plus what was removed (for run stats)."""

    kept: list[KeywordCandidate]
    removed: list[KeywordCandidate]

    @property
    def removed_count(self) -> int:
        return len(self.removed)


class _CompiledTerm:
    __slots__ = ("term", "pattern", "needle")

    def __init__(self, term: BrandTerm) -> None:
        self.term = term.term
        self.needle = term.term.lower()
        self.pattern: re.Pattern[str] | None = None
        if term.is_regex:
            try:
                self.pattern = re.compile(term.term, re.IGNORECASE)
            except re.error as e:
                logger.warning(
                    "Invalid brand term pattern, using substring match",
                    extra={"term": term.term, "error": str(e)},
                )

    def matches(self, keyword: str) -> bool:
        if self.pattern is not None:
            return self.pattern.search(keyword) is not None
        return self.needle in keyword.lower()


class BrandFilter:
    """Removes candidates whose text matches any brand term."""

    def __init__(self, terms: list[BrandTerm]) -> None:
        self._terms = [_CompiledTerm(t) for t in terms if t.term and t.term.strip()]

    def is_branded(self, keyword: str) -> bool:
        return any(term.matches(keyword) for term in self._terms)

    def apply(self, candidates: list[KeywordCandidate]) -> BrandFilterResult:
        if not self._terms:
            return BrandFilterResult(kept=list(candidates), removed=[])

        kept: list[KeywordCandidate] = []
        removed: list[KeywordCandidate] = []
        for candidate in candidates:
            if self.is_branded(candidate.keyword):
                removed.append(candidate)
            else:
                kept.append(candidate)

        if removed:
            logger.debug(
                "Branded keywords removed",
                extra={
                    "removed_count": len(removed),
                    "kept_count": len(kept),
                    "sample": [c.keyword for c in removed[:10]],
                },
            )
        return BrandFilterResult(kept=kept, removed=removed)
