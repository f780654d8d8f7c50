"""
FILE: tenant_rag/providers/embeddings/openai.py

OpenAI embeddings provider (AsyncOpenAI embeddings endpoint).

The container builds it with:
    build_provider(settings)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .base import IEmbeddingsProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAIEmbeddingsConfig:
    model: str
    api_key: Optional[str] = None
    dimensions: Optional[int] = None
    timeout_s: float = 10.0


class OpenAIEmbeddingsProvider(IEmbeddingsProvider):
    """
    Embeddings via the OpenAI API.

    `dimensions` is only sent for models that accept it (text-embedding-3-*);
    older models always return their native size.
    """

    name = "openai"

    def __init__(self, config: OpenAIEmbeddingsConfig, client=None) -> None:
        self.config = config
        self._client = client
        logger.info("OpenAIEmbeddingsProvider created (model=%s)", self.config.model)

    async def initialize(self) -> None:
        if self._client is not None:
            return
        if not self.config.api_key:
            raise ValueError("OPENAI_API_KEY not set")

        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(api_key=self.config.api_key, timeout=self.config.timeout_s)
        logger.info("✓ OpenAI embeddings initialized (model=%s)", self.config.model)

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if self._client is None:
            raise RuntimeError("OpenAIEmbeddingsProvider not initialized. Call initialize() first.")
        if not texts:
            return []

        kwargs = {"model": self.config.model, "input": texts}
        if self.config.dimensions and self.config.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self.config.dimensions

        resp = await self._client.embeddings.create(**kwargs)

        # API returns items with an `index`; keep input order explicitly
        items = sorted(resp.data, key=lambda item: item.index)
        return [list(item.embedding) for item in items]

    async def shutdown(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None
        logger.info("OpenAIEmbeddingsProvider shutdown complete")


def build_provider(settings) -> OpenAIEmbeddingsProvider:
    return OpenAIEmbeddingsProvider(
        OpenAIEmbeddingsConfig(
            model=settings.embeddings_model_name,
            api_key=settings.openai_api_key,
            dimensions=settings.embeddings_dimension or None,
            timeout_s=settings.embeddings_timeout,
        )
    )


__all__ = ["OpenAIEmbeddingsConfig", "OpenAIEmbeddingsProvider", "build_provider"]
