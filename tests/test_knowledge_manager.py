import pytest
# mypy: ignore-errors

from domain.knowledge.errors import BackendError, EmbeddingError, FactNotFoundError, FactStorageError
from domain.knowledge.manager import STORE_UNAVAILABLE, describe_error


@pytest.mark.asyncio
async def test_remember_and_recall(make_manager) -> None:
    manager = make_manager({
        "my name is Ana": [1.0, 0.0, 0.0],
        "I work as a nurse": [0.0, 1.0, 0.0],
        "what is my name?": [0.9, 0.1, 0.0],
    })
    name_id = await manager.remember("my name is Ana", confidence=0.9)
    await manager.remember("I work as a nurse")

    results = await manager.recall("what is my name?", limit=3)
    assert [r.id for r in results] == [name_id]
    assert results[0].fact.source == "user"

    metrics = manager.snapshot_metrics()
    assert metrics.facts_stored == 2
    assert metrics.recall_attempts == 1
    assert metrics.recall_hit_rate == 1.0


@pytest.mark.asyncio
async def test_recall_of_blank_query_skips_embedding(make_manager) -> None:
    manager = make_manager()
    assert await manager.recall("   ") == []
    assert manager.embedder.calls == []


@pytest.mark.asyncio
async def test_remember_propagates_embedding_failure(make_manager, store) -> None:
    manager = make_manager()
    with pytest.raises(EmbeddingError):
        await manager.remember("unknown text")
    assert await store.get_all_facts() == []
    assert manager.snapshot_metrics().failures == {"EmbeddingError": 1}

    with pytest.raises(EmbeddingError):
        await manager.recall("unknown query")
    assert manager.snapshot_metrics().failures == {"EmbeddingError": 2}


@pytest.mark.asyncio
async def test_forget_counts_failures(make_manager) -> None:
    manager = make_manager({"temp": [1.0]})
    fid = await manager.remember("temp")
    await manager.forget(fid)
    with pytest.raises(FactNotFoundError):
        await manager.forget(fid)
    metrics = manager.snapshot_metrics()
    assert metrics.facts_forgotten == 1
    assert metrics.failures == {"FactNotFoundError": 1}


@pytest.mark.asyncio
async def test_backfill_embeds_only_missing_vectors(make_manager, store) -> None:
    manager = make_manager({"plain": [0.0, 1.0]})
    already = await store.store_fact_with_embedding("embedded", [1.0, 0.0])
    plain = await store.store_fact("plain")
    await store.store_fact("unembeddable")

    assert await manager.backfill_embeddings() == 1
    assert (await store.get_fact(plain)).embedding == [0.0, 1.0]
    assert (await store.get_fact(already)).embedding == [1.0, 0.0]
    assert "embedded" not in manager.embedder.calls
    assert manager.snapshot_metrics().failures == {"EmbeddingError": 1}


def test_describe_error_maps_taxonomy() -> None:
    assert "42" in describe_error(FactNotFoundError(42))
    assert "disk full" in describe_error(FactStorageError("a fact", "disk full"))
    assert describe_error(BackendError("get_all_facts", "locked")) == STORE_UNAVAILABLE
