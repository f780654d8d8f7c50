"""
================================================================================
FILE: tenant_rag/api/dependencies.py
================================================================================

PURPOSE:
FastAPI dependency injection functions. Route handlers receive the objects
built at startup (stored on app.state by the lifespan in main.py) through
Depends(), so tests can swap them with app.dependency_overrides.

DEPENDENCY CHAIN:
get_container()
├─ Used by: health endpoint
get_rag_service()
├─ Used by: document, search and query endpoints
get_request_id()
├─ Request id set by the middleware (log correlation)
"""

from fastapi import Request

from tenant_rag.container.service_container import ServiceContainer
from tenant_rag.pipeline.rag import RAGService


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialized. Check application startup logs.")
    return value


async def get_container(request: Request) -> ServiceContainer:
    return _state(request, "container")


async def get_rag_service(request: Request) -> RAGService:
    return _state(request, "rag_service")


async def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")
