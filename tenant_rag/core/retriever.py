"""
================================================================================
FILE: tenant_rag/core/retriever.py
================================================================================

PURPOSE:
    Read side of the retrieval layer: top-k semantic search inside ONE
    tenant's namespace.

WORKFLOW:
    1. Validate query text and top_k (ValidationError)
    2. Resolve tenant -> namespace
    3. Embed the query
    4. Query the index restricted to the namespace
    5. Return matches ordered by descending score (ties keep index order)

KEY FACTS:
    - Results only ever come from the caller's namespace
    - An empty or never-written namespace returns []
    - top_k above VECTOR_DB_MAX_TOP_K is rejected, never silently truncated
    - Errors propagate; they are never turned into an empty result
"""

import logging
from typing import List, Optional

from tenant_rag.config.settings import Settings
from tenant_rag.utils.deadline import Deadline

from .embeddings_handler import EmbeddingsHandler
from .exceptions import ValidationError
from .models import RetrievalMatch
from .namespace_resolver import NamespaceResolver
from .vector_db_handler import VectorDBHandler

logger = logging.getLogger(__name__)

COMPONENT = "retriever"


class SemanticRetriever:
    """Tenant-scoped semantic search."""

    def __init__(
        self,
        resolver: NamespaceResolver,
        embeddings: EmbeddingsHandler,
        vectordb: VectorDBHandler,
        settings: Settings,
    ) -> None:
        self.resolver = resolver
        self.embeddings = embeddings
        self.vectordb = vectordb
        self.default_top_k = settings.vector_db_top_k
        self.max_top_k = settings.vector_db_max_top_k
        logger.info(
            "SemanticRetriever initialized (top_k=%d max_top_k=%d)",
            self.default_top_k,
            self.max_top_k,
        )

    def _check_top_k(self, top_k) -> int:
        if isinstance(top_k, bool) or not isinstance(top_k, int):
            raise ValidationError("top_k must be an integer", component=COMPONENT)
        if top_k < 1:
            raise ValidationError(
                "top_k must be >= 1", context={"top_k": top_k}, component=COMPONENT
            )
        if top_k > self.max_top_k:
            raise ValidationError(
                f"top_k exceeds the index limit of {self.max_top_k}",
                context={"top_k": top_k, "max_top_k": self.max_top_k},
                component=COMPONENT,
            )
        return top_k

    async def search(
        self,
        tenant_id: str,
        query_text: str,
        top_k: Optional[int] = None,
        include_metadata: bool = True,
        score_threshold: Optional[float] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[RetrievalMatch]:
        """
        Args:
            tenant_id: tenant whose namespace is searched
            query_text: natural-language query
            top_k: number of matches wanted (default VECTOR_DB_TOP_K)
            include_metadata: attach stored metadata to each match
            score_threshold: drop matches scoring below this value
            deadline: shared time budget for embed + query

        Returns:
            At most top_k matches, best first
        """
        top_k = self._check_top_k(self.default_top_k if top_k is None else top_k)
        if not isinstance(query_text, str) or not query_text.strip():
            raise ValidationError("query text must be a non-empty string", component=COMPONENT)

        namespace = self.resolver.resolve(tenant_id)
        vector = await self.embeddings.embed_query(query_text, deadline=deadline)

        matches = await self.vectordb.query(
            namespace,
            vector,
            top_k,
            include_metadata=include_metadata,
            score_threshold=score_threshold,
            deadline=deadline,
        )

        logger.debug(
            "Search returned %d matches",
            len(matches),
            extra={"tenant_id": tenant_id, "namespace": namespace, "component": COMPONENT},
        )
        return matches


__all__ = ["SemanticRetriever"]
