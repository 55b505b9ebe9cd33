"""Keyword search used by the local backend.

Bag-of-substrings overlap, not semantic matching:

    match_ratio = matched query tokens / total query tokens
    score       = match_ratio * (0.5 + importance * 0.5)

A query token matches a content token when either one contains the other.
Importance scales the ratio into [0.5x, 1.0x], so it separates equal matches
without letting a partial match beat a full one on importance alone.
"""

from __future__ import annotations

from collections.abc import Iterable

from memory_mcp.models import Memory, MemorySearchResult

DEFAULT_LIMIT = 5


def tokenize(text: str) -> list[str]:
    """Lower-case and split on whitespace. Empty text has no tokens."""
    return text.lower().split()


def match_ratio(query_tokens: list[str], content: str) -> float:
    """Fraction of query tokens found (by substring, either way) in content."""
    if not query_tokens:
        return 0.0
    content_tokens = tokenize(content)
    matched = 0
    for q in query_tokens:
        for c in content_tokens:
            if q in c or c in q:
                matched += 1
                break
    return matched / len(query_tokens)


def score_memory(query_tokens: list[str], memory: Memory) -> float:
    return match_ratio(query_tokens, memory.content) * (0.5 + memory.importance * 0.5)


def rank_memories(
    memories: Iterable[Memory],
    query: str,
    *,
    limit: int | None = None,
    types: Iterable[str] | None = None,
    min_score: float | None = None,
    min_importance: float | None = None,
) -> list[MemorySearchResult]:
    """Filter, score and sort memories against a query, best first."""
    candidates = list(memories)

    wanted = set(types) if types else None
    if wanted:
        candidates = [m for m in candidates if m.type in wanted]

    if min_importance is not None:
        candidates = [m for m in candidates if m.importance >= min_importance]

    query_tokens = tokenize(query)
    results = [MemorySearchResult(memory=m, score=score_memory(query_tokens, m)) for m in candidates]

    results = [r for r in results if r.score > 0]
    if min_score is not None:
        results = [r for r in results if r.score >= min_score]

    # sort() is stable: equal scores keep insertion order
    results.sort(key=lambda r: r.score, reverse=True)

    return results[: DEFAULT_LIMIT if limit is None else limit]
