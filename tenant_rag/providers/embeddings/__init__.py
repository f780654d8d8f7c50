"""
FILE: tenant_rag/providers/embeddings/__init__.py

Embeddings providers package.

ServiceContainer imports implementations by name:
  tenant_rag.providers.embeddings.<provider_name>  (gemini, openai, huggingface)
and calls their `build_provider(settings)`.
"""

from .base import IEmbeddingsProvider
from .cached import CachedEmbeddingsProvider

__all__ = [
    "IEmbeddingsProvider",
    "CachedEmbeddingsProvider",
]
