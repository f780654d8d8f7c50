"""
FILE: tenant_rag/providers/embeddings/huggingface.py

Local embeddings with sentence-transformers (EMBEDDINGS_PROVIDER=huggingface).

Loading and encoding both block, so they run in worker threads. Vectors are
returned as produced: normalization is left to the index's distance metric.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional

from .base import IEmbeddingsProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HFEmbeddingsConfig:
    model_name: str
    device: str = "cpu"
    batch_size: int = 32
    cache_dir: Optional[str] = None
    token: Optional[str] = None


def _load_model(config: HFEmbeddingsConfig) -> Any:
    from sentence_transformers import SentenceTransformer

    if config.cache_dir:
        os.makedirs(config.cache_dir, exist_ok=True)
    return SentenceTransformer(
        config.model_name,
        device=config.device,
        cache_folder=config.cache_dir,
        token=config.token,
    )


class HFEmbeddingsProvider(IEmbeddingsProvider):
    name = "huggingface"

    def __init__(self, config: HFEmbeddingsConfig, model: Any = None):
        self.config = config
        self._model = model
        self.dimension: Optional[int] = None

    async def initialize(self) -> None:
        if self._model is None:
            logger.info(
                "Loading sentence-transformers model %s on %s",
                self.config.model_name,
                self.config.device,
            )
            self._model = await asyncio.to_thread(_load_model, self.config)

        get_dim = getattr(self._model, "get_sentence_embedding_dimension", None)
        self.dimension = get_dim() if get_dim else None
        logger.info(
            "✓ HFEmbeddingsProvider ready (model=%s dim=%s)", self.config.model_name, self.dimension
        )

    def _encode(self, texts: List[str]) -> List[List[float]]:
        matrix = self._model.encode(
            texts,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=False,
        )
        return [[float(x) for x in row] for row in matrix]

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if self._model is None:
            raise RuntimeError("HFEmbeddingsProvider not initialized")
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, list(texts))

    async def shutdown(self) -> None:
        self._model = None
        logger.info("HFEmbeddingsProvider released model %s", self.config.model_name)


def build_provider(settings) -> HFEmbeddingsProvider:
    return HFEmbeddingsProvider(
        HFEmbeddingsConfig(
            model_name=settings.embeddings_model_name,
            device=settings.embeddings_device,
            batch_size=settings.embeddings_batch_size,
            cache_dir=settings.embeddings_cache_dir,
            token=settings.hf_token,
        )
    )


__all__ = ["HFEmbeddingsProvider", "HFEmbeddingsConfig", "build_provider"]
