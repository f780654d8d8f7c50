"""
FILE: tenant_rag/providers/embeddings/gemini.py

Gemini embeddings provider using the google-genai SDK (async surface).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from google import genai
from google.genai import types as genai_types

from .base import IEmbeddingsProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeminiEmbeddingsConfig:
    model: str
    api_key: Optional[str] = None
    output_dimensionality: Optional[int] = None


class GeminiEmbeddingsProvider(IEmbeddingsProvider):
    """
    google-genai `client.aio.models.embed_content`.

    Batches are sent in one request; the response keeps input order.
    """

    name = "gemini"

    def __init__(self, config: GeminiEmbeddingsConfig, client: Optional[genai.Client] = None) -> None:
        self.config = config
        self._client = client
        logger.info("GeminiEmbeddingsProvider created (model=%s)", self.config.model)

    async def initialize(self) -> None:
        if self._client is not None:
            return
        if not self.config.api_key:
            raise ValueError("GEMINI_API_KEY not set")
        self._client = genai.Client(api_key=self.config.api_key)
        logger.info("✓ Gemini embeddings initialized (model=%s)", self.config.model)

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if self._client is None:
            raise RuntimeError("GeminiEmbeddingsProvider not initialized. Call initialize() first.")
        if not texts:
            return []

        config = None
        if self.config.output_dimensionality:
            config = genai_types.EmbedContentConfig(
                output_dimensionality=self.config.output_dimensionality
            )

        resp = await self._client.aio.models.embed_content(
            model=self.config.model,
            contents=texts,
            config=config,
        )
        return [list(e.values or []) for e in (resp.embeddings or [])]

    async def shutdown(self) -> None:
        # google-genai does not require explicit close; just drop the client
        self._client = None
        logger.info("GeminiEmbeddingsProvider shutdown complete")


def build_provider(settings) -> GeminiEmbeddingsProvider:
    return GeminiEmbeddingsProvider(
        GeminiEmbeddingsConfig(
            model=settings.embeddings_model_name,
            api_key=settings.gemini_api_key,
            output_dimensionality=settings.embeddings_dimension or None,
        )
    )


__all__ = ["GeminiEmbeddingsConfig", "GeminiEmbeddingsProvider", "build_provider"]
