"""High level knowledge management used by chat and tool handlers."""
from __future__ import annotations

from typing import List, Optional, Protocol

from core.logging import get_logger
from domain.knowledge.errors import (
    BackendError,
    EmbeddingError,
    FactNotFoundError,
    FactStorageError,
    KnowledgeError,
)
from domain.knowledge.models import KnowledgeMetrics, SearchResult
from domain.knowledge.store import KnowledgeStore

log = get_logger("knowledge")

STORE_UNAVAILABLE = "knowledge store unavailable"


class Embedder(Protocol):
    async def embed(self, model: str, text: str) -> List[float]: ...


def describe_error(exc: BaseException) -> str:
    """User-facing text for a failed knowledge operation."""
    if isinstance(exc, FactNotFoundError):
        return f"No stored fact with id {exc.fact_id}."
    if isinstance(exc, FactStorageError):
        return f"Could not save {exc.fact[:50]!r}: {exc.message}"
    if isinstance(exc, EmbeddingError):
        return f"Could not vectorize text with {exc.model}: {exc.message}"
    if isinstance(exc, BackendError):
        return STORE_UNAVAILABLE
    return str(exc)


class KnowledgeManager:
    def __init__(self, store: KnowledgeStore, embedder: Embedder, model: str = "nomic-embed-text",
                 default_limit: int = 10):
        self.store = store
        self.embedder = embedder
        self.model = model
        self.default_limit = default_limit
        self.metrics = KnowledgeMetrics()

    async def remember(self, text: str, source: Optional[str] = "user", confidence: float = 1.0) -> int:
        try:
            embedding = await self.embedder.embed(self.model, text)
            fact_id = await self.store.store_fact_with_embedding(text, embedding, source, confidence)
        except (KnowledgeError, EmbeddingError) as e:
            self._count_failure("remember", e)
            raise
        self.metrics.facts_stored += 1
        return fact_id

    async def recall(self, query: str, limit: Optional[int] = None) -> List[SearchResult]:
        self.metrics.recall_attempts += 1
        if not (query or "").strip():
            return []
        try:
            embedding = await self.embedder.embed(self.model, query)
            results = await self.store.search_by_embedding(
                embedding, self.default_limit if limit is None else limit
            )
        except (KnowledgeError, EmbeddingError) as e:
            self._count_failure("recall", e)
            raise
        self.metrics.facts_recalled += len(results)
        return results

    async def forget(self, fact_id: int) -> None:
        try:
            await self.store.delete_fact(fact_id)
        except KnowledgeError as e:
            self._count_failure("forget", e)
            raise
        self.metrics.facts_forgotten += 1

    async def backfill_embeddings(self) -> int:
        """Vectorize stored facts that were saved without an embedding."""
        facts = await self.store.get_all_facts(include_embeddings=True)
        done = 0
        for fact in facts:
            if fact.has_embedding:
                continue
            try:
                embedding = await self.embedder.embed(self.model, fact.text)
                await self.store.update_embedding(fact.id, embedding)
            except EmbeddingError as e:
                log.warning("backfill skipped", fact_id=fact.id, error=e.message)
                self._count_failure("backfill", e)
                continue
            except FactNotFoundError:
                # deleted between listing and update
                continue
            done += 1
        self.metrics.embeddings_backfilled += done
        if done:
            log.info("embeddings backfilled", count=done)
        return done

    def snapshot_metrics(self) -> KnowledgeMetrics:
        return self.metrics

    def _count_failure(self, operation: str, exc: BaseException) -> None:
        kind = type(exc).__name__
        self.metrics.failures[kind] = self.metrics.failures.get(kind, 0) + 1
        log.info("knowledge operation failed", operation=operation, kind=kind)
