# ============================================================================
# API Models - Request and Response Schemas
# ============================================================================

"""
Pydantic models for API request/response validation.
Used for type hints and OpenAPI documentation.

Limits that depend on configuration (top_k upper bound, known models) are
enforced by the core, not here, so the HTTP and Python entry points reject
exactly the same inputs.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tenant_rag.core.models import Answer, IndexResult, RetrievalMatch


# ============================================================================
# REQUEST MODELS
# ============================================================================


class IndexDocumentRequest(BaseModel):
    """Body of PUT /tenants/{tenant_id}/documents/{doc_id}."""
    content: str = Field(..., description="Full document text")
    timeout: Optional[float] = Field(None, gt=0, description="Deadline for the call (seconds)")

    model_config = ConfigDict(
        json_schema_extra={"example": {"content": "Machine learning is a field of AI..."}}
    )


class SearchRequest(BaseModel):
    """Body of POST /tenants/{tenant_id}/search."""
    query: str = Field(..., description="Search query")
    top_k: Optional[int] = Field(None, description="Number of results (default VECTOR_DB_TOP_K)")
    score_threshold: Optional[float] = Field(None, description="Drop matches scoring below this")
    timeout: Optional[float] = Field(None, gt=0, description="Deadline for the call (seconds)")

    model_config = ConfigDict(
        json_schema_extra={"example": {"query": "What is machine learning?", "top_k": 5}}
    )


class QueryRequest(BaseModel):
    """Body of POST /tenants/{tenant_id}/query."""
    query: str = Field(..., description="User question")
    top_k: Optional[int] = Field(None, description="Context matches (default VECTOR_DB_TOP_K)")
    model: Optional[str] = Field(None, description="Completion model hint")
    timeout: Optional[float] = Field(None, gt=0, description="Deadline for the call (seconds)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"query": "What is machine learning?", "top_k": 5, "model": "gpt-4o"}
        }
    )


# ============================================================================
# RESPONSE MODELS
# ============================================================================


class MatchResult(BaseModel):
    """Single retrieval match."""
    id: str
    score: float
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_match(cls, match: RetrievalMatch) -> "MatchResult":
        return cls(id=match.id, score=match.score, metadata=match.metadata)


class IndexResponse(BaseModel):
    namespace: str
    doc_id: str
    vector_ids: List[str] = []
    dimension: int

    @classmethod
    def from_result(cls, result: IndexResult) -> "IndexResponse":
        return cls(
            namespace=result.namespace,
            doc_id=result.doc_id,
            vector_ids=list(result.vector_ids),
            dimension=result.dimension,
        )


class DeleteResponse(BaseModel):
    status: str = "deleted"
    tenant_id: str
    doc_id: Optional[str] = None


class SearchResponse(BaseModel):
    """Matches ordered best first."""
    results: List[MatchResult] = []


class AnswerResponse(BaseModel):
    answer: str
    model: str
    provider: str
    sources: List[MatchResult] = []

    @classmethod
    def from_answer(cls, answer: Answer) -> "AnswerResponse":
        return cls(
            answer=answer.text,
            model=answer.model,
            provider=answer.provider,
            sources=[MatchResult.from_match(m) for m in answer.matches],
        )


# ============================================================================
# GENERIC RESPONSES
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: str
    message: str
    component: Optional[str] = None
    request_id: Optional[str] = None


class HealthCheckResponse(BaseModel):
    status: str
    version: str
    providers: Dict[str, Any] = {}
