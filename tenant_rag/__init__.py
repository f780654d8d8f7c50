# tenant_rag/__init__.py

"""
Tenant-aware retrieval-and-routing layer of a RAG web application.

This package contains:
- api: FastAPI routes and dependencies
- config: settings
- container: provider discovery and initialization
- core: namespace resolver, indexer, retriever, model router
- pipeline: RAGService entry points
- providers: embeddings, vector index, completion and cache backends
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
