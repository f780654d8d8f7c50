"""
FILE: tenant_rag/providers/embeddings/cached.py

Caller-side embedding cache.

Wraps any IEmbeddingsProvider with an ICacheProvider. The wrapped provider
itself never caches; this layer is opt-in (CACHE_PROVIDER=redis) and keyed
by model + dimension + sha256(text), so switching either never serves stale
vectors. Only well-formed vectors are written: a malformed response is
passed through (and rejected downstream) but never replayed from the cache.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Any, Dict, List, Optional

from tenant_rag.providers.cache.base import ICacheProvider

from .base import IEmbeddingsProvider

logger = logging.getLogger(__name__)


def embedding_cache_key(model: str, dimension: int, text: str) -> str:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"emb:{model}:{dimension}:{digest}"


def _cacheable(vector: Any, dimension: int) -> bool:
    if not isinstance(vector, list) or not vector:
        return False
    if dimension and len(vector) != dimension:
        return False
    return all(
        isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)
        for x in vector
    )


class CachedEmbeddingsProvider(IEmbeddingsProvider):
    """Read-through cache in front of another embeddings provider."""

    def __init__(
        self,
        inner: IEmbeddingsProvider,
        cache: ICacheProvider,
        model: str,
        dimension: int = 0,
        ttl: Optional[int] = None,
    ) -> None:
        self.inner = inner
        self.cache = cache
        self.model = model
        self.dimension = dimension
        self.ttl = ttl
        self.name = f"cached:{inner.name}"

    def _key(self, text: str) -> str:
        return embedding_cache_key(self.model, self.dimension, text)

    async def initialize(self) -> None:
        await self.inner.initialize()
        await self.cache.initialize()

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        found: Dict[int, List[float]] = {}
        for i, text in enumerate(texts):
            cached = await self.cache.get(self._key(text))
            if _cacheable(cached, self.dimension):
                found[i] = cached

        missing = [i for i in range(len(texts)) if i not in found]
        if missing:
            fresh = await self.inner.embed_texts([texts[i] for i in missing])
            if len(fresh) != len(missing):
                raise ValueError(
                    f"embeddings count mismatch: got={len(fresh)} expected={len(missing)}"
                )
            for i, vector in zip(missing, fresh):
                found[i] = vector
                if _cacheable(vector, self.dimension):
                    await self.cache.set(self._key(texts[i]), vector, ttl=self.ttl)

        logger.debug("Embedding cache: hits=%d misses=%d", len(texts) - len(missing), len(missing))
        return [found[i] for i in range(len(texts))]

    async def shutdown(self) -> None:
        await self.inner.shutdown()
        await self.cache.shutdown()


__all__ = ["CachedEmbeddingsProvider", "embedding_cache_key"]
