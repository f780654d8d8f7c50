"""
FILE: tenant_rag/providers/embeddings/base.py

Embeddings provider interface (contract).
All embeddings implementations must implement this.

Providers return raw vectors: no caching, no normalization. Timeouts and
error translation live in core.embeddings_handler.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class IEmbeddingsProvider(ABC):
    """Abstract base class for embeddings providers."""

    name: str = "embeddings"

    @abstractmethod
    async def initialize(self) -> None:
        """Create client / load model."""
        raise NotImplementedError

    @abstractmethod
    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a batch of texts.

        Returns:
            List of embeddings in input order; each embedding is a list[float].
        """
        raise NotImplementedError

    async def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        vectors = await self.embed_texts([text])
        if len(vectors) != 1:
            raise ValueError(f"expected 1 embedding, got {len(vectors)}")
        return vectors[0]

    @abstractmethod
    async def shutdown(self) -> None:
        """Cleanup resources."""
        raise NotImplementedError
