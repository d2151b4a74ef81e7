from __future__ import annotations
# mypy: ignore-errors

from pathlib import Path
from typing import Dict, List

import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest_asyncio

from domain.knowledge.errors import EmbeddingError
from domain.knowledge.manager import KnowledgeManager
from domain.knowledge.store import KnowledgeStore
from memory.knowledge_repo import KnowledgeRepo
from storage.db import DB


class TickClock:
    """Strictly increasing fake time so updated_at ordering is deterministic."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


class StubEmbedder:
    def __init__(self, vectors: Dict[str, List[float]] | None = None) -> None:
        self.vectors = vectors or {}
        self.calls: List[str] = []

    async def embed(self, model: str, text: str) -> List[float]:
        self.calls.append(text)
        if text not in self.vectors:
            raise EmbeddingError(model, text, "no vector for text")
        return self.vectors[text]


@pytest_asyncio.fixture
async def db(tmp_path) -> DB:
    database = DB(tmp_path / "test.db")
    await database.connect()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def repo(db: DB) -> KnowledgeRepo:
    return KnowledgeRepo(db, clock=TickClock())


@pytest_asyncio.fixture
async def store(repo: KnowledgeRepo) -> KnowledgeStore:
    return KnowledgeStore(repo)


@pytest_asyncio.fixture
async def make_manager(store: KnowledgeStore):
    def factory(vectors: Dict[str, List[float]] | None = None) -> KnowledgeManager:
        return KnowledgeManager(store, StubEmbedder(vectors), model="test-embed")

    return factory
