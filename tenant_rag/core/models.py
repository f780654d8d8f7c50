"""
================================================================================
FILE: tenant_rag/core/models.py
================================================================================

PURPOSE:
    Value types passed between the indexer, retriever, router and RAG service.
    Plain frozen dataclasses: they never leave the process as-is (the API
    layer has its own pydantic schemas) and are never persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class Document:
    """A unit of tenant content to index."""

    id: str
    content: str


@dataclass(frozen=True)
class RetrievalMatch:
    """One search hit; higher score = more similar."""

    id: str
    score: float
    metadata: Optional[Dict[str, Any]] = None

    @property
    def text(self) -> Optional[str]:
        if not self.metadata:
            return None
        value = self.metadata.get("text")
        return value if isinstance(value, str) else None


@dataclass(frozen=True)
class ModelRequest:
    """
    Input to the model router.

    model: optional hint naming the completion model
    context: retrieved matches composed ahead of the message, in the given order
    """

    message: str
    model: Optional[str] = None
    context: Optional[Sequence[RetrievalMatch]] = None


@dataclass(frozen=True)
class IndexResult:
    """What one index_document call wrote."""

    namespace: str
    doc_id: str
    vector_ids: List[str] = field(default_factory=list)
    dimension: int = 0


@dataclass(frozen=True)
class RouteDecision:
    """Provider + model a request was dispatched to."""

    provider: str
    model: str


@dataclass(frozen=True)
class Answer:
    """Result of answer_query: completion text plus the context it was given."""

    text: str
    model: str
    provider: str
    matches: List[RetrievalMatch] = field(default_factory=list)


__all__ = [
    "Document",
    "RetrievalMatch",
    "ModelRequest",
    "IndexResult",
    "RouteDecision",
    "Answer",
]
