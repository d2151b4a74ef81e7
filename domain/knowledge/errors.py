"""Knowledge store error taxonomy.

Every store operation either returns its value or raises exactly one of
:class:`FactNotFoundError`, :class:`FactStorageError` or :class:`BackendError`.
Callers are expected to branch on the class.
"""
from __future__ import annotations

from typing import Optional


class KnowledgeError(Exception):
    """Base class for recoverable knowledge store failures."""


class FactNotFoundError(KnowledgeError):
    def __init__(self, fact_id: int) -> None:
        self.fact_id = fact_id
        super().__init__(f"Fact with id {fact_id} not found")


class FactStorageError(KnowledgeError):
    """A write of a specific fact could not be committed."""

    def __init__(self, fact: str, message: str, cause: Optional[BaseException] = None) -> None:
        self.fact = fact
        self.message = message
        self.cause = cause
        super().__init__(f"Failed to store fact {fact[:50]!r}: {message}")


class BackendError(KnowledgeError):
    """Any other failure of the backing store (connectivity, query errors)."""

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.message = message
        self.cause = cause
        super().__init__(f"{operation}: {message}")


class CorruptEmbeddingError(ValueError):
    """Raised when a stored embedding blob cannot be decoded."""


class EmbeddingError(Exception):
    """The embedding model could not produce a vector."""

    def __init__(self, model: str, text: str, message: str, cause: Optional[BaseException] = None) -> None:
        self.model = model
        self.text = text[:100]
        self.message = message
        self.cause = cause
        super().__init__(f"{model}: {message}")
