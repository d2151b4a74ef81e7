"""Knowledge domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(slots=True)
class Fact:
    id: int
    text: str
    source: Optional[str]
    confidence: float
    created_at: datetime
    updated_at: datetime
    embedding: Optional[List[float]] = None
    categories: tuple[str, ...] = ()

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


@dataclass(slots=True)
class SearchResult:
    fact: Fact
    similarity: float

    @property
    def id(self) -> int:
        return self.fact.id

    @property
    def text(self) -> str:
        return self.fact.text


@dataclass(slots=True)
class KnowledgeMetrics:
    facts_stored: int = 0
    facts_recalled: int = 0
    recall_attempts: int = 0
    facts_forgotten: int = 0
    embeddings_backfilled: int = 0
    failures: dict[str, int] = field(default_factory=dict)

    @property
    def recall_hit_rate(self) -> float:
        if self.recall_attempts == 0:
            return 0.0
        return self.facts_recalled / self.recall_attempts
