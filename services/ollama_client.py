import logging
from typing import List, Optional

import httpx

from domain.knowledge.errors import EmbeddingError

log = logging.getLogger("ollama")


class OllamaClient:
    def __init__(self, host: str = "http://localhost:11434", timeout: float = 30,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = host.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def embed(self, model: str, text: str) -> List[float]:
        payload = {"model": model, "input": text}
        try:
            r = await self._client.post("/api/embed", json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as e:
            log.warning("Ollama embed HTTP error: %s", e)
            raise EmbeddingError(model, text, str(e) or "Embedding generation failed", e) from e
        except ValueError as e:
            raise EmbeddingError(model, text, "invalid JSON from embed endpoint", e) from e

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not embeddings or not embeddings[0]:
            raise EmbeddingError(model, text, "embed response carried no vectors")
        return [float(v) for v in embeddings[0]]

    async def health_check(self) -> tuple[bool, str]:
        try:
            r = await self._client.get("/api/tags", timeout=10)
            if r.status_code == 200:
                return True, "ok"
            return False, f"http {r.status_code}"
        except httpx.HTTPError as e:
            return False, f"network error: {e}"

    async def aclose(self):
        await self._client.aclose()
