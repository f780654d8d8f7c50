"""
================================================================================
FILE: tenant_rag/pipeline/__init__.py
================================================================================

PURPOSE:
    Package initialization for the pipeline layer.

    Import: from tenant_rag.pipeline import RAGService
"""

from tenant_rag.pipeline.rag import RAGService

__all__ = [
    "RAGService",
]
