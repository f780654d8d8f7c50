"""
================================================================================
FILE: tenant_rag/pipeline/rag.py
================================================================================

PURPOSE:
    RAGService: the entry points external callers use.
      - index a document for tenant T (+ delete one / delete all)
      - search tenant T's documents
      - answer a query for tenant T (retrieve, then route with context)

WORKFLOW (answer_query):
    1. Turn the caller's timeout into ONE Deadline for the whole call
    2. SemanticRetriever.search(tenant, query, top_k)
    3. ModelRouter.dispatch(ModelRequest(query, model, context=matches))
    4. Return Answer(text, model, provider, matches)

RAG FLOW:
    User Query
        ↓
    Embed Query (embeddings_handler)
        ↓
    Search tenant namespace (vector_db_handler)
        ↓
    Top-K matches, best first
        ↓
    Compose context + route (model_router)
        ↓
    Return Answer

KEY FACTS:
    - Built once from a ServiceContainer; holds no per-call state
    - Answers are never cached
    - Every error from below propagates unchanged
"""

import logging
from typing import List, Optional

from tenant_rag.config.settings import Settings
from tenant_rag.container.service_container import ServiceContainer
from tenant_rag.core.doc_indexer import DocumentIndexer
from tenant_rag.core.embeddings_handler import EmbeddingsHandler
from tenant_rag.core.exceptions import ValidationError
from tenant_rag.core.model_router import ModelCatalog, ModelRouter, RoutingStrategy
from tenant_rag.core.models import Answer, Document, IndexResult, ModelRequest, RetrievalMatch
from tenant_rag.core.namespace_resolver import NamespaceResolver
from tenant_rag.core.retriever import SemanticRetriever
from tenant_rag.core.vector_db_handler import VectorDBHandler
from tenant_rag.utils.deadline import Deadline
from tenant_rag.utils.helpers import measure_time

logger = logging.getLogger(__name__)


def _deadline(timeout: Optional[float]) -> Deadline:
    if timeout is None:
        return Deadline.none()
    if timeout <= 0:
        raise ValidationError(
            "timeout must be > 0 seconds", context={"timeout": timeout}, component="rag"
        )
    return Deadline(timeout)


class RAGService:
    """Tenant-aware indexing, retrieval and answering."""

    def __init__(
        self,
        indexer: DocumentIndexer,
        retriever: SemanticRetriever,
        router: ModelRouter,
    ) -> None:
        self.indexer = indexer
        self.retriever = retriever
        self.router = router
        logger.info("RAGService initialized")

    @classmethod
    def from_container(
        cls,
        container: ServiceContainer,
        settings: Settings,
        strategy: Optional[RoutingStrategy] = None,
    ) -> "RAGService":
        """Wire resolver, handlers, indexer, retriever and router from providers."""
        resolver = NamespaceResolver.from_settings(settings)
        embeddings = EmbeddingsHandler(container.get_embeddings(), settings)
        vectordb = VectorDBHandler(container.get_vector_db(), settings)

        router = ModelRouter(
            providers=container.get_llm_providers(),
            catalog=ModelCatalog.from_settings(settings),
            settings=settings,
            strategy=strategy,
        )
        return cls(
            indexer=DocumentIndexer(resolver, embeddings, vectordb, settings),
            retriever=SemanticRetriever(resolver, embeddings, vectordb, settings),
            router=router,
        )

    # ========================================================================
    # WRITE SIDE
    # ========================================================================

    async def index_document(
        self,
        tenant_id: str,
        doc_id: str,
        content: str,
        timeout: Optional[float] = None,
    ) -> IndexResult:
        with measure_time("index document"):
            return await self.indexer.index(
                tenant_id, Document(id=doc_id, content=content), deadline=_deadline(timeout)
            )

    async def delete_document(
        self, tenant_id: str, doc_id: str, timeout: Optional[float] = None
    ) -> None:
        await self.indexer.delete_document(tenant_id, doc_id, deadline=_deadline(timeout))

    async def delete_all_for_tenant(self, tenant_id: str, timeout: Optional[float] = None) -> None:
        await self.indexer.delete_all_for_tenant(tenant_id, deadline=_deadline(timeout))

    # ========================================================================
    # READ SIDE
    # ========================================================================

    async def search(
        self,
        tenant_id: str,
        query: str,
        top_k: Optional[int] = None,
        score_threshold: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> List[RetrievalMatch]:
        return await self.retriever.search(
            tenant_id,
            query,
            top_k=top_k,
            score_threshold=score_threshold,
            deadline=_deadline(timeout),
        )

    async def answer_query(
        self,
        tenant_id: str,
        query: str,
        top_k: Optional[int] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Answer:
        """
        Retrieve the tenant's best matches and answer with them as context.

        The model hint is checked before anything else runs, so an unknown
        model never costs an embedding call.
        """
        deadline = _deadline(timeout)
        self.router.select(ModelRequest(message=query, model=model))

        with measure_time("answer query"):
            matches = await self.retriever.search(
                tenant_id, query, top_k=top_k, deadline=deadline
            )
            decision, text = await self.router.dispatch(
                ModelRequest(message=query, model=model, context=matches),
                deadline=deadline,
            )

        logger.info(
            "✓ Answered with %s/%s (%d context matches)",
            decision.provider,
            decision.model,
            len(matches),
            extra={"tenant_id": tenant_id, "component": "rag"},
        )
        return Answer(
            text=text,
            model=decision.model,
            provider=decision.provider,
            matches=list(matches),
        )


__all__ = ["RAGService"]
