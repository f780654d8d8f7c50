"""
================================================================================
FILE: tenant_rag/api/__init__.py
================================================================================

PURPOSE:
    Package initialization for API layer. Exports the app factory and the
    router.

    Import in tests: from tenant_rag.api import create_app
"""

from tenant_rag.api.main import create_app
from tenant_rag.api.routes import router

__all__ = ["create_app", "router"]
