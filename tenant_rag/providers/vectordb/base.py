"""
FILE: tenant_rag/providers/vectordb/base.py

VectorDB provider interface (contract).
All vector index implementations must implement this.

Every operation is scoped to ONE namespace; there is no cross-namespace
method. Namespaces are created implicitly by the index on first upsert and
are only removed through delete_all().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence


class IVectorDBProvider(ABC):
    """Abstract base class for vector database providers."""

    name: str = "vectordb"

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize provider (connect, ensure collection, ...)."""
        raise NotImplementedError

    @abstractmethod
    async def upsert(
        self,
        namespace: str,
        ids: List[str],
        vectors: List[List[float]],
        metadatas: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """Insert or overwrite vectors by id inside a namespace."""
        raise NotImplementedError

    @abstractmethod
    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """
        Similarity search restricted to one namespace.

        Returns list of (higher score = more similar):
          { "id": str, "score": float, "metadata": dict | None }
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, namespace: str, ids: List[str]) -> None:
        """Delete vectors by id inside a namespace (missing ids are ignored)."""
        raise NotImplementedError

    @abstractmethod
    async def delete_document(
        self,
        namespace: str,
        doc_id: str,
        keep_ids: Optional[Sequence[str]] = None,
    ) -> None:
        """
        Delete every vector whose metadata doc_id matches, except keep_ids.

        One filtered delete: chunk ids never need to be enumerated.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_all(self, namespace: str) -> None:
        """Remove every vector of a namespace in a single operation."""
        raise NotImplementedError

    @abstractmethod
    async def count(self, namespace: str) -> int:
        """Number of vectors stored in a namespace."""
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        """Cleanup resources."""
        raise NotImplementedError
