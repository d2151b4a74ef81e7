"""Brute-force cosine ranking over embedded facts."""
from __future__ import annotations

import math
from typing import Iterable, List, Sequence

from domain.knowledge.models import Fact, SearchResult

SIMILARITY_THRESHOLD = 0.5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    # mismatched dimensions and zero vectors score 0 and fall below the threshold
    if len(a) != len(b):
        return 0.0
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    magnitude = math.sqrt(norm_a) * math.sqrt(norm_b)
    if magnitude == 0:
        return 0.0
    return dot / magnitude


def rank(
    query: Sequence[float],
    facts: Iterable[Fact],
    limit: int = 10,
    threshold: float = SIMILARITY_THRESHOLD,
) -> List[SearchResult]:
    """Score facts against ``query``, keep those strictly above ``threshold``,
    best first, at most ``limit`` of them. Facts without an embedding are skipped."""
    limit = max(int(limit), 0)
    if limit == 0:
        return []
    results = []
    for fact in facts:
        if fact.embedding is None:
            continue
        score = cosine_similarity(query, fact.embedding)
        if score > threshold:
            results.append(SearchResult(fact=fact, similarity=score))
    results.sort(key=lambda r: r.similarity, reverse=True)
    return results[:limit]
