"""Deduplicator: one candidate per canonical key.

Merge rules when several raw candidates share a canonical key:
- display text comes from the first occurrence
- the source tag is the highest-precedence source among them
  (``SOURCE_PRIORITY``: manual > performance > competitor)
- performance numbers narrow-fetched during collection are carried over
  from whichever record has them; nothing else is filled in here

Output keeps first-occurrence order, so identical input always yields an
identical list.
"""

from dataclasses import dataclass

from keyword_discovery.services.candidates import KeywordCandidate, source_rank


@dataclass
class DedupResult:
    candidates: list[KeywordCandidate]
    duplicates_merged: int = 0


def merge_candidates(
    existing: KeywordCandidate, incoming: KeywordCandidate
) -> KeywordCandidate:
    """Fold ``incoming`` into ``existing`` (same canonical key)."""
    changes: dict[str, object] = {}

    if source_rank(incoming.source) < source_rank(existing.source):
        changes["source"] = incoming.source

    if not existing.has_performance_data and incoming.has_performance_data:
        changes.update(
            clicks=incoming.clicks,
            impressions=incoming.impressions,
            ctr=incoming.ctr,
            position=incoming.position,
        )

    if existing.intent is None and incoming.intent is not None:
        changes["intent"] = incoming.intent

    return existing.with_updates(**changes) if changes else existing


def deduplicate(candidates: list[KeywordCandidate]) -> DedupResult:
    merged: dict[str, KeywordCandidate] = {}
    duplicates = 0

    for candidate in candidates:
        key = candidate.canonical_key
        if not key:
            continue
        if key in merged:
            merged[key] = merge_candidates(merged[key], candidate)
            duplicates += 1
        else:
            merged[key] = candidate

    # dicts keep insertion order, i.e. first occurrence
    return DedupResult(candidates=list(merged.values()), duplicates_merged=duplicates)
