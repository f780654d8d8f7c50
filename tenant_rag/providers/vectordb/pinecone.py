"""
FILE: tenant_rag/providers/vectordb/pinecone.py

Pinecone provider (VECTORDB_PROVIDER=pinecone).

Design:
- one existing Pinecone index holds every tenant; a tenant namespace is a
  native Pinecone namespace, so every call carries `namespace=`
- the index is never created here: its dimension and metric are read with
  describe_index() at startup and every vector is checked against them
- the SDK is synchronous; calls run in worker threads
- euclidean indexes report a distance, flipped to 1 / (1 + d)
- delete_document lists ids by prefix and confirms them by metadata doc_id,
  since serverless indexes do not delete by metadata filter

Env vars (common):
- PINECONE_API_KEY=...
- PINECONE_INDEX_NAME=documents
- PINECONE_INDEX_HOST=... (optional)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pinecone import Pinecone
from pinecone.exceptions import NotFoundException

from tenant_rag.core.exceptions import DimensionMismatchError

from .base import IVectorDBProvider

logger = logging.getLogger(__name__)

UPSERT_BATCH_SIZE = 100

_METRICS = {"cosine": "cosine", "dotproduct": "dot", "euclidean": "euclid"}


@dataclass(frozen=True)
class PineconeConfig:
    api_key: Optional[str]
    index_name: str
    host: Optional[str] = None


class PineconeProvider(IVectorDBProvider):
    name = "pinecone"

    def __init__(
        self,
        config: PineconeConfig,
        index: Any = None,
        dimension: Optional[int] = None,
        metric: str = "cosine",
    ) -> None:
        self.config = config
        self._index = index
        self._dim = dimension
        self.metric = _METRICS.get(metric, metric)
        logger.info("PineconeProvider created: index=%s", self.config.index_name)

    async def initialize(self) -> None:
        if self._index is not None:
            return
        try:
            if not self.config.api_key:
                raise ValueError("PINECONE_API_KEY not set")

            client = Pinecone(api_key=self.config.api_key)
            description = await asyncio.to_thread(client.describe_index, self.config.index_name)
            self._dim = int(description.dimension)
            self.metric = _METRICS.get(str(description.metric), str(description.metric))
            self._index = client.Index(host=self.config.host or description.host)
            logger.info(
                "✓ Pinecone initialized (index=%s dim=%s metric=%s)",
                self.config.index_name,
                self._dim,
                self.metric,
            )
        except Exception as e:
            logger.error("Pinecone init failed: %s", str(e), exc_info=True)
            raise

    def _require_index(self) -> Any:
        if self._index is None:
            raise RuntimeError("PineconeProvider not initialized")
        return self._index

    def _check_dim(self, dim: int) -> None:
        if self._dim is not None and self._dim != dim:
            raise DimensionMismatchError(
                f"index '{self.config.index_name}' holds {self._dim}-d vectors, got {dim}-d",
                context={"index": self.config.index_name, "expected": self._dim, "got": dim},
                component="vectordb",
            )

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def upsert(
        self,
        namespace: str,
        ids: List[str],
        vectors: List[List[float]],
        metadatas: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        index = self._require_index()
        if not ids:
            return
        if len(ids) != len(vectors):
            raise ValueError("ids and vectors length mismatch")
        if metadatas is not None and len(metadatas) != len(ids):
            raise ValueError("metadatas length mismatch")
        for v in vectors:
            self._check_dim(len(v))

        records = [
            {
                "id": record_id,
                "values": [float(x) for x in vectors[i]],
                "metadata": (metadatas[i] if metadatas else {}) or {},
            }
            for i, record_id in enumerate(ids)
        ]
        for start in range(0, len(records), UPSERT_BATCH_SIZE):
            batch = records[start:start + UPSERT_BATCH_SIZE]
            await asyncio.to_thread(index.upsert, vectors=batch, namespace=namespace)
        logger.debug("Pinecone upsert: namespace=%s items=%d", namespace, len(records))

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        index = self._require_index()
        self._check_dim(len(vector))

        response = await asyncio.to_thread(
            index.query,
            vector=[float(x) for x in vector],
            top_k=int(top_k),
            namespace=namespace,
            include_metadata=include_metadata,
        )

        out: List[Dict[str, Any]] = []
        for match in response.matches or []:
            score = float(match.score)
            if self.metric == "euclid":
                score = 1.0 / (1.0 + score)
            if score_threshold is not None and score < score_threshold:
                continue
            out.append(
                {
                    "id": str(match.id),
                    "score": score,
                    "metadata": dict(match.metadata or {}) if include_metadata else None,
                }
            )
        # euclidean distances arrive ascending, which is already best first
        return out

    async def _delete_ids(self, namespace: str, ids: List[str]) -> None:
        index = self._require_index()
        try:
            await asyncio.to_thread(index.delete, ids=ids, namespace=namespace)
        except NotFoundException:
            logger.debug("Pinecone namespace %s not found, nothing to delete", namespace)

    async def delete(self, namespace: str, ids: List[str]) -> None:
        if not ids:
            return
        await self._delete_ids(namespace, list(ids))

    def _document_ids(self, namespace: str, doc_id: str) -> List[str]:
        index = self._require_index()
        found: List[str] = []
        for page in index.list(prefix=doc_id, namespace=namespace):
            page = list(page)
            if not page:
                continue
            fetched = index.fetch(ids=page, namespace=namespace).vectors or {}
            for record_id, record in fetched.items():
                if (record.metadata or {}).get("doc_id") == doc_id:
                    found.append(record_id)
        return found

    async def delete_document(
        self,
        namespace: str,
        doc_id: str,
        keep_ids: Optional[Sequence[str]] = None,
    ) -> None:
        try:
            ids = await asyncio.to_thread(self._document_ids, namespace, doc_id)
        except NotFoundException:
            return
        keep = set(keep_ids or ())
        doomed = [i for i in ids if i not in keep]
        if doomed:
            await self._delete_ids(namespace, doomed)

    async def delete_all(self, namespace: str) -> None:
        index = self._require_index()
        try:
            await asyncio.to_thread(index.delete, delete_all=True, namespace=namespace)
        except NotFoundException:
            logger.debug("Pinecone namespace %s not found, nothing to clear", namespace)
            return
        logger.info("Pinecone namespace cleared: %s", namespace)

    async def count(self, namespace: str) -> int:
        index = self._require_index()
        stats = await asyncio.to_thread(index.describe_index_stats)
        summary = (stats.namespaces or {}).get(namespace)
        return int(summary.vector_count) if summary is not None else 0

    async def shutdown(self) -> None:
        self._index = None
        logger.info("PineconeProvider shutdown complete")


def build_provider(settings) -> PineconeProvider:
    return PineconeProvider(
        PineconeConfig(
            api_key=settings.pinecone_api_key,
            index_name=settings.pinecone_index_name,
            host=settings.pinecone_index_host,
        )
    )


__all__ = ["PineconeConfig", "PineconeProvider", "build_provider"]
