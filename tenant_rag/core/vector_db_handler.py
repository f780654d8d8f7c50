"""
================================================================================
FILE: tenant_rag/core/vector_db_handler.py
================================================================================

PURPOSE:
    Namespace-scoped access to the vector index. Wraps the configured
    IVectorDBProvider with deadline / timeout protection and translates
    provider failures into the core's error types.

WORKFLOW:
    1. Receive a namespace (already resolved) and the operation arguments
    2. Call the provider bounded by the caller's Deadline and the
       VECTOR_DB_TIMEOUT cap
    3. Normalize query results into RetrievalMatch, best score first

ERROR TRANSLATION:
    - caller deadline spent            -> CanceledError
    - per-call cap hit (deadline left) -> ProviderError
    - any provider exception           -> ProviderError
    - RAGPipelineException from below  -> re-raised unchanged
      (e.g. DimensionMismatchError raised by the index)

KEY FACTS:
    - Every method takes exactly one namespace; there is no cross-namespace call
    - An empty / never-written namespace yields [] (not an error)
    - No retries
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from tenant_rag.config.settings import Settings
from tenant_rag.providers.vectordb.base import IVectorDBProvider
from tenant_rag.utils.deadline import Deadline, DeadlineExceeded

from .exceptions import CanceledError, ProviderError, RAGPipelineException
from .models import RetrievalMatch

logger = logging.getLogger(__name__)

COMPONENT = "vectordb"

T = TypeVar("T")


class VectorDBHandler:
    """
    Handles vector index operations for one namespace at a time.
    Supports deadline / timeout protection.
    """

    def __init__(self, provider: IVectorDBProvider, settings: Settings):
        """
        Args:
            provider: Pre-initialized vector DB provider (created by ServiceContainer)
            settings: Application settings
        """
        self.provider = provider
        self.settings = settings
        logger.info("VectorDBHandler initialized (provider=%s)", self.provider_name)

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    async def _call(
        self,
        operation: str,
        factory: Callable[[], Awaitable[T]],
        namespace: str,
        deadline: Optional[Deadline],
        context: Optional[Dict[str, Any]] = None,
    ) -> T:
        deadline = deadline or Deadline.none()
        context = {"operation": operation, "namespace": namespace, **(context or {})}

        try:
            return await deadline.run(factory(), cap=self.settings.vector_db_timeout)

        except DeadlineExceeded:
            raise CanceledError(
                f"deadline expired before vector {operation}",
                context=context,
                component=COMPONENT,
            )

        except asyncio.TimeoutError:
            if deadline.expired():
                raise CanceledError(
                    f"deadline expired during vector {operation}",
                    context=context,
                    component=COMPONENT,
                )
            raise ProviderError(
                f"vector {operation} timed out after {self.settings.vector_db_timeout}s",
                context=context,
                component=COMPONENT,
                provider=self.provider_name,
            )

        except RAGPipelineException:
            raise

        except Exception as e:
            raise ProviderError(
                f"vector {operation} failed: {e}",
                context=context,
                component=COMPONENT,
                provider=self.provider_name,
            ) from e

    async def upsert(
        self,
        namespace: str,
        ids: List[str],
        vectors: List[List[float]],
        metadatas: Optional[List[Dict[str, Any]]] = None,
        deadline: Optional[Deadline] = None,
    ) -> None:
        await self._call(
            "upsert",
            lambda: self.provider.upsert(namespace, ids, vectors, metadatas),
            namespace,
            deadline,
            {"count": len(ids)},
        )
        logger.debug("Upserted %d vectors", len(ids), extra={"namespace": namespace})

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
        score_threshold: Optional[float] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[RetrievalMatch]:
        raw = await self._call(
            "query",
            lambda: self.provider.query(
                namespace,
                vector,
                top_k,
                include_metadata=include_metadata,
                score_threshold=score_threshold,
            ),
            namespace,
            deadline,
            {"top_k": top_k},
        )

        try:
            matches = [
                RetrievalMatch(
                    id=str(item["id"]),
                    score=float(item["score"]),
                    metadata=item.get("metadata") if include_metadata else None,
                )
                for item in raw or []
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(
                f"vector index returned a malformed match: {e}",
                context={"operation": "query", "namespace": namespace},
                component=COMPONENT,
                provider=self.provider_name,
            ) from e

        # sorted() is stable: equal scores keep the index's order
        matches = sorted(matches, key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    async def delete_document(
        self,
        namespace: str,
        doc_id: str,
        keep_ids: Optional[Sequence[str]] = None,
        deadline: Optional[Deadline] = None,
    ) -> None:
        await self._call(
            "delete_document",
            lambda: self.provider.delete_document(namespace, doc_id, keep_ids=keep_ids),
            namespace,
            deadline,
            {"doc_id": doc_id},
        )

    async def delete_all(self, namespace: str, deadline: Optional[Deadline] = None) -> None:
        await self._call(
            "delete_all", lambda: self.provider.delete_all(namespace), namespace, deadline
        )

