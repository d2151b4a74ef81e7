# main.py
import asyncio

from core.settings import settings
from core.logging import get_logger, setup_logging

from storage.db import DB
from memory.knowledge_repo import KnowledgeRepo

from domain.knowledge.errors import KnowledgeError
from domain.knowledge.manager import KnowledgeManager, describe_error
from domain.knowledge.store import KnowledgeStore

from services.ollama_client import OllamaClient


async def app():
    setup_logging(settings.LOG_LEVEL, diag=settings.is_diag)
    log = get_logger("main")

    db = DB(settings.DB_PATH)
    await db.connect()
    store = KnowledgeStore(KnowledgeRepo(db))
    ollama = OllamaClient(settings.OLLAMA_HOST, timeout=settings.OLLAMA_TIMEOUT)
    manager = KnowledgeManager(
        store, ollama, model=settings.EMBEDDING_MODEL, default_limit=settings.SEARCH_LIMIT
    )

    try:
        ok, status = await ollama.health_check()
        if ok:
            await manager.backfill_embeddings()
        else:
            log.warning("embedding backend unavailable, skipping backfill", status=status)
        facts = await store.get_all_facts()
        log.info("knowledge store ready", path=str(db.path), facts=len(facts))
    except KnowledgeError as e:
        log.error("knowledge store check failed", error=describe_error(e))
        raise
    finally:
        await ollama.aclose()
        await db.close()
        log.info("Shutdown complete.")


if __name__ == "__main__":
    asyncio.run(app())
