"""Public knowledge store contract.

Wraps :class:`memory.knowledge_repo.KnowledgeRepo` and the similarity
ranker, turning missing rows and ``sqlite3`` failures into the error
taxonomy of :mod:`domain.knowledge.errors`. The mapping differs per
operation: write failures on the upsert path carry the fact text, the rest
are reported as backend failures.
"""
from __future__ import annotations

import sqlite3
import struct
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from core.logging import get_logger
from domain.knowledge.codec import decode_embedding, encode_embedding
from domain.knowledge.errors import BackendError, FactNotFoundError, FactStorageError
from domain.knowledge.models import Fact, SearchResult
from domain.knowledge.similarity import rank
from memory.knowledge_repo import KnowledgeRepo

log = get_logger("knowledge")


def _ts(value) -> datetime:
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


def _to_fact(row: Dict) -> Fact:
    blob = row.get("embedding")
    return Fact(
        id=int(row["id"]),
        text=row["fact"],
        source=row["source"],
        confidence=float(row["confidence"]),
        created_at=_ts(row["created_at"]),
        updated_at=_ts(row["updated_at"]),
        embedding=decode_embedding(blob) if blob is not None else None,
        categories=tuple(row.get("categories") or ()),
    )


class KnowledgeStore:
    def __init__(self, repo: KnowledgeRepo) -> None:
        self.repo = repo

    async def store_fact(self, text: str, source: Optional[str] = None, confidence: float = 1.0) -> int:
        """Upsert ``text``; an existing embedding is left as is."""
        text = self._check_text(text)
        try:
            fact_id = await self.repo.upsert(text, source, float(confidence))
        except sqlite3.Error as e:
            log.warning("store_fact failed", fact=text[:50], error=str(e))
            raise FactStorageError(text, str(e), e) from e
        log.debug("fact stored", fact_id=fact_id, source=source)
        return fact_id

    async def store_fact_with_embedding(
        self,
        text: str,
        embedding: Sequence[float],
        source: Optional[str] = None,
        confidence: float = 1.0,
    ) -> int:
        text = self._check_text(text)
        if not embedding:
            raise FactStorageError(text, "embedding must not be empty")
        try:
            blob = encode_embedding(embedding)
        except (OverflowError, TypeError, ValueError, struct.error) as e:
            raise FactStorageError(text, f"embedding cannot be packed as float32: {e}", e) from e
        try:
            fact_id = await self.repo.upsert(
                text, source, float(confidence), blob, write_embedding=True
            )
        except sqlite3.Error as e:
            log.warning("store_fact_with_embedding failed", fact=text[:50], error=str(e))
            raise FactStorageError(text, str(e), e) from e
        log.debug("fact stored", fact_id=fact_id, source=source, dims=len(embedding))
        return fact_id

    async def get_fact(self, fact_id: int) -> Fact:
        try:
            row = await self.repo.fetch_one(fact_id)
        except sqlite3.Error as e:
            raise self._backend("get_fact", e) from e
        if row is None:
            raise FactNotFoundError(fact_id)
        return _to_fact(row)

    async def get_all_facts(self, include_embeddings: bool = False) -> List[Fact]:
        """All facts, most recently updated first. Vectors are not even read
        from disk unless ``include_embeddings`` is set."""
        try:
            rows = await self.repo.fetch_all(include_embeddings)
        except sqlite3.Error as e:
            raise self._backend("get_all_facts", e) from e
        return [_to_fact(r) for r in rows]

    async def search_by_embedding(self, query: Sequence[float], limit: int = 10) -> List[SearchResult]:
        if limit <= 0:
            return []
        try:
            rows = await self.repo.fetch_embedded()
        except sqlite3.Error as e:
            raise self._backend("search_by_embedding", e) from e
        results = rank(query, (_to_fact(r) for r in rows), limit)
        log.debug("semantic search", candidates=len(rows), hits=len(results))
        return results

    async def delete_fact(self, fact_id: int) -> None:
        try:
            deleted = await self.repo.delete(fact_id)
        except sqlite3.Error as e:
            raise self._backend("delete_fact", e) from e
        if deleted == 0:
            raise FactNotFoundError(fact_id)
        log.debug("fact deleted", fact_id=fact_id)

    async def update_embedding(self, fact_id: int, embedding: Sequence[float]) -> None:
        if not embedding:
            raise BackendError("update_embedding", "embedding must not be empty")
        try:
            blob = encode_embedding(embedding)
        except (OverflowError, TypeError, ValueError, struct.error) as e:
            raise BackendError("update_embedding", f"embedding cannot be packed as float32: {e}", e) from e
        try:
            updated = await self.repo.set_embedding(fact_id, blob)
        except sqlite3.Error as e:
            raise self._backend("update_embedding", e) from e
        if updated == 0:
            raise FactNotFoundError(fact_id)

    async def attach_categories(self, fact_id: int, names: Iterable[str]) -> None:
        try:
            found = await self.repo.attach_categories(fact_id, names)
        except sqlite3.Error as e:
            raise self._backend("attach_categories", e) from e
        if not found:
            raise FactNotFoundError(fact_id)

    @staticmethod
    def _check_text(text: str) -> str:
        if not (text or "").strip():
            raise FactStorageError(text or "", "fact text must not be empty")
        return text

    @staticmethod
    def _backend(operation: str, exc: sqlite3.Error) -> BackendError:
        log.warning("knowledge backend failure", operation=operation, error=str(exc))
        return BackendError(operation, str(exc), exc)
