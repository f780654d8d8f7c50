"""
================================================================================
FILE: tenant_rag/core/__init__.py
================================================================================

PURPOSE:
    Package initialization for core layer. Exports the indexer, retriever,
    router, their handlers and value types.

    Import: from tenant_rag.core import DocumentIndexer, SemanticRetriever
"""

# ================================================================================
# IMPORTS & EXPORTS
# ================================================================================

from tenant_rag.core.chunking import SlidingWindowChunker
from tenant_rag.core.doc_indexer import DocumentIndexer
from tenant_rag.core.embeddings_handler import EmbeddingsHandler
from tenant_rag.core.model_router import (
    HintOrDefaultStrategy,
    ModelCatalog,
    ModelRouter,
    RoutingStrategy,
)
from tenant_rag.core.models import (
    Answer,
    Document,
    IndexResult,
    ModelRequest,
    RetrievalMatch,
    RouteDecision,
)
from tenant_rag.core.namespace_resolver import NamespaceResolver
from tenant_rag.core.retriever import SemanticRetriever
from tenant_rag.core.vector_db_handler import VectorDBHandler

__all__ = [
    "SlidingWindowChunker",
    "DocumentIndexer",
    "EmbeddingsHandler",
    "HintOrDefaultStrategy",
    "ModelCatalog",
    "ModelRouter",
    "RoutingStrategy",
    "Answer",
    "Document",
    "IndexResult",
    "ModelRequest",
    "RetrievalMatch",
    "RouteDecision",
    "NamespaceResolver",
    "SemanticRetriever",
    "VectorDBHandler",
]
