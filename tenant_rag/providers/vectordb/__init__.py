"""
VectorDB Providers package.

Implementations are loaded by the service container through each module's
build_provider(settings) factory.
"""

from tenant_rag.providers.vectordb.base import IVectorDBProvider

__all__ = [
    "IVectorDBProvider",
]
