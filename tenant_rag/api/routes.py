# tenant_rag/api/routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from tenant_rag import __version__
from tenant_rag.api.dependencies import (
    get_container,
    get_rag_service,
    get_request_id,
)
from tenant_rag.api.models import (
    AnswerResponse,
    DeleteResponse,
    HealthCheckResponse,
    IndexDocumentRequest,
    IndexResponse,
    MatchResult,
    QueryRequest,
    SearchRequest,
    SearchResponse,
)
from tenant_rag.container.service_container import ServiceContainer
from tenant_rag.pipeline.rag import RAGService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["rag"])

# ============================================================================
# DOCUMENTS (write side)
# ============================================================================


@router.put(
    "/tenants/{tenant_id}/documents/{doc_id}",
    response_model=IndexResponse,
    summary="Index a document",
    description="Embed the document and upsert it into the tenant's namespace (overwrites)",
)
async def index_document(
    tenant_id: str,
    doc_id: str,
    body: IndexDocumentRequest,
    service: RAGService = Depends(get_rag_service),
    request_id: str = Depends(get_request_id),
) -> IndexResponse:
    logger.info(
        "Index request doc_id=%s (%d chars)",
        doc_id,
        len(body.content),
        extra={"request_id": request_id, "tenant_id": tenant_id},
    )
    result = await service.index_document(tenant_id, doc_id, body.content, timeout=body.timeout)
    return IndexResponse.from_result(result)


@router.delete(
    "/tenants/{tenant_id}/documents/{doc_id}",
    response_model=DeleteResponse,
    summary="Delete one document",
)
async def delete_document(
    tenant_id: str,
    doc_id: str,
    timeout: Optional[float] = Query(None, gt=0, description="Deadline for the call (seconds)"),
    service: RAGService = Depends(get_rag_service),
) -> DeleteResponse:
    await service.delete_document(tenant_id, doc_id, timeout=timeout)
    return DeleteResponse(tenant_id=tenant_id, doc_id=doc_id)


@router.delete(
    "/tenants/{tenant_id}/documents",
    response_model=DeleteResponse,
    summary="Delete every document of a tenant",
)
async def delete_all_documents(
    tenant_id: str,
    timeout: Optional[float] = Query(None, gt=0, description="Deadline for the call (seconds)"),
    service: RAGService = Depends(get_rag_service),
) -> DeleteResponse:
    await service.delete_all_for_tenant(tenant_id, timeout=timeout)
    return DeleteResponse(tenant_id=tenant_id)


# ============================================================================
# SEARCH / QUERY (read side)
# ============================================================================


@router.post(
    "/tenants/{tenant_id}/search",
    response_model=SearchResponse,
    summary="Semantic search in the tenant's documents",
)
async def search(
    tenant_id: str,
    body: SearchRequest,
    service: RAGService = Depends(get_rag_service),
) -> SearchResponse:
    matches = await service.search(
        tenant_id,
        body.query,
        top_k=body.top_k,
        score_threshold=body.score_threshold,
        timeout=body.timeout,
    )
    return SearchResponse(results=[MatchResult.from_match(m) for m in matches])


@router.post(
    "/tenants/{tenant_id}/query",
    response_model=AnswerResponse,
    status_code=status.HTTP_200_OK,
    summary="Answer a question from the tenant's documents",
)
async def query(
    tenant_id: str,
    body: QueryRequest,
    service: RAGService = Depends(get_rag_service),
    request_id: str = Depends(get_request_id),
) -> AnswerResponse:
    logger.info(
        "Query request (model=%s top_k=%s)",
        body.model,
        body.top_k,
        extra={"request_id": request_id, "tenant_id": tenant_id},
    )
    answer = await service.answer_query(
        tenant_id,
        body.query,
        top_k=body.top_k,
        model=body.model,
        timeout=body.timeout,
    )
    return AnswerResponse.from_answer(answer)


# ============================================================================
# HEALTH
# ============================================================================


@router.get("/health", response_model=HealthCheckResponse, summary="Liveness + active providers")
async def health(container: ServiceContainer = Depends(get_container)) -> HealthCheckResponse:
    info = container.describe()
    return HealthCheckResponse(
        status="healthy" if info["initialized"] else "starting",
        version=__version__,
        providers=info,
    )
