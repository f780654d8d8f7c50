"""
================================================================================
FILE: tenant_rag/core/doc_indexer.py
================================================================================

PURPOSE:
    Write side of the retrieval layer: puts a tenant's document into that
    tenant's namespace of the vector index, and removes it again.

WORKFLOW (index_document):
    1. Validate doc_id / content (ValidationError)
    2. Resolve tenant -> namespace (InvalidTenantError)
    3. Split into chunks (one chunk unless CHUNK_SIZE > 0)
    4. Embed ALL chunks (ProviderError / CanceledError propagate; nothing
       has been written yet)
    5. Mutation phase, shielded from cancellation:
       a. upsert every chunk (same ids overwrite, last write wins)
       b. prune chunks of the same doc_id left over from a longer
          previous version

STORED METADATA (per vector):
    - doc_id      : document id (lets delete_document use one filtered delete)
    - chunk_index : position of the chunk in the document
    - text        : chunk text, when STORE_TEXT=true

KEY FACTS:
    - No retries: the first failure is returned to the caller
    - An embedding failure means no upsert is ever issued
    - Once the mutation phase starts it runs to completion even if the
      calling task is cancelled; the caller still observes the cancellation
    - A write that fails after its caller was cancelled is logged at ERROR
    - Deletes never enumerate ids: one namespace-scoped (filtered) call
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from tenant_rag.config.settings import Settings
from tenant_rag.utils.deadline import Deadline

from .chunking import CHUNK_ID_SEPARATOR, Chunk, SlidingWindowChunker
from .embeddings_handler import EmbeddingsHandler
from .exceptions import CanceledError, ValidationError
from .models import Document, IndexResult
from .namespace_resolver import NamespaceResolver
from .vector_db_handler import VectorDBHandler

logger = logging.getLogger(__name__)

COMPONENT = "indexer"


class DocumentIndexer:
    """Indexes and deletes tenant documents."""

    def __init__(
        self,
        resolver: NamespaceResolver,
        embeddings: EmbeddingsHandler,
        vectordb: VectorDBHandler,
        settings: Settings,
        chunker: Optional[SlidingWindowChunker] = None,
    ) -> None:
        self.resolver = resolver
        self.embeddings = embeddings
        self.vectordb = vectordb
        self.settings = settings
        self.chunker = chunker or SlidingWindowChunker.from_settings(settings)
        self.store_text = settings.store_text
        self._detached: Set["asyncio.Task[None]"] = set()
        logger.info(
            "DocumentIndexer initialized (chunk_size=%d overlap=%d store_text=%s)",
            self.chunker.chunk_size,
            self.chunker.overlap,
            self.store_text,
        )

    def _validate_doc_id(self, doc_id: str) -> None:
        if not isinstance(doc_id, str) or not doc_id.strip():
            raise ValidationError("doc_id must be a non-empty string", component=COMPONENT)
        if self.chunker.enabled and CHUNK_ID_SEPARATOR in doc_id:
            raise ValidationError(
                f"doc_id may not contain '{CHUNK_ID_SEPARATOR}' while chunking is enabled",
                context={"doc_id": doc_id},
                component=COMPONENT,
            )

    def _metadata(self, doc_id: str, chunk: Chunk) -> Dict[str, Any]:
        meta: Dict[str, Any] = {"doc_id": doc_id, "chunk_index": chunk.index}
        if self.store_text:
            meta["text"] = chunk.text
        return meta

    async def index_document(
        self,
        tenant_id: str,
        doc_id: str,
        content: str,
        deadline: Optional[Deadline] = None,
    ) -> IndexResult:
        """
        Embed a document and upsert it into the tenant's namespace.

        Raises:
            ValidationError: empty doc_id or content
            InvalidTenantError: tenant id cannot be mapped to a namespace
            ProviderError: embedding or index failure
            CanceledError: deadline expired before the mutation phase
            DimensionMismatchError: vector size differs from the namespace's
        """
        deadline = deadline or Deadline.none()
        self._validate_doc_id(doc_id)
        if not isinstance(content, str) or not content.strip():
            raise ValidationError(
                "content must be a non-empty string",
                context={"doc_id": doc_id},
                component=COMPONENT,
            )

        namespace = self.resolver.resolve(tenant_id)
        log_ctx = {"tenant_id": tenant_id, "namespace": namespace, "component": COMPONENT}

        chunks = self.chunker.split(doc_id, content)
        vectors = await self.embeddings.embed_texts([c.text for c in chunks], deadline=deadline)

        ids = [c.id for c in chunks]
        metadatas = [self._metadata(doc_id, c) for c in chunks]

        if deadline.expired():
            raise CanceledError(
                "deadline expired before upsert",
                context={"doc_id": doc_id, "namespace": namespace},
                component=COMPONENT,
            )

        # Writes are bounded by the per-call caps only, so a write that was
        # issued is never abandoned half way by the caller's deadline.
        write = asyncio.ensure_future(self._write(namespace, doc_id, ids, vectors, metadatas))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            self._detached.add(write)
            write.add_done_callback(self._report_detached_write)
            raise

        logger.info("✓ Indexed %s (%d vectors)", doc_id, len(ids), extra=log_ctx)
        return IndexResult(
            namespace=namespace,
            doc_id=doc_id,
            vector_ids=ids,
            dimension=len(vectors[0]),
        )

    def _report_detached_write(self, task: "asyncio.Task[None]") -> None:
        self._detached.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Index write failed after the caller was cancelled: %s",
                exc,
                extra={"component": COMPONENT},
            )

    async def _write(
        self,
        namespace: str,
        doc_id: str,
        ids: List[str],
        vectors: List[List[float]],
        metadatas: List[Dict[str, Any]],
    ) -> None:
        await self.vectordb.upsert(namespace, ids, vectors, metadatas)
        await self.vectordb.delete_document(namespace, doc_id, keep_ids=ids)

    async def index(
        self, tenant_id: str, document: Document, deadline: Optional[Deadline] = None
    ) -> IndexResult:
        return await self.index_document(
            tenant_id, document.id, document.content, deadline=deadline
        )

    async def delete_document(
        self, tenant_id: str, doc_id: str, deadline: Optional[Deadline] = None
    ) -> None:
        """Remove every vector of one document (missing documents are a no-op)."""
        if not isinstance(doc_id, str) or not doc_id.strip():
            raise ValidationError("doc_id must be a non-empty string", component=COMPONENT)
        namespace = self.resolver.resolve(tenant_id)

        await self.vectordb.delete_document(namespace, doc_id, deadline=deadline)
        logger.info(
            "✓ Deleted document %s",
            doc_id,
            extra={"tenant_id": tenant_id, "namespace": namespace, "component": COMPONENT},
        )

    async def delete_all_for_tenant(
        self, tenant_id: str, deadline: Optional[Deadline] = None
    ) -> None:
        """Remove the tenant's whole namespace in one index operation."""
        namespace = self.resolver.resolve(tenant_id)

        await self.vectordb.delete_all(namespace, deadline=deadline)
        logger.info(
            "✓ Deleted all documents",
            extra={"tenant_id": tenant_id, "namespace": namespace, "component": COMPONENT},
        )


__all__ = ["DocumentIndexer"]
