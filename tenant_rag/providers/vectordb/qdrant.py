"""
FILE: tenant_rag/providers/vectordb/qdrant.py

Qdrant provider.

Design:
- ONE shared collection holds every tenant; a namespace is a keyword payload
  field indexed as the tenant key (Qdrant's recommended multitenancy layout)
- every read/delete carries a `namespace` filter; there is no unfiltered path
- point id = uuid5(namespace + record id), so equal document ids of two
  tenants never collide and an upsert of the same id overwrites in place
- the collection is created lazily on the first upsert with the first
  vector's size; querying before that returns no matches
- writes use wait=True so a query right after an upsert/delete sees it

Env vars (common):
- QDRANT_URL=http://localhost:6333
- QDRANT_API_KEY=... (optional)
- QDRANT_COLLECTION_NAME=documents
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client import models as qm

from tenant_rag.core.exceptions import DimensionMismatchError

from .base import IVectorDBProvider

logger = logging.getLogger(__name__)

# Fixed uuid5 namespace for point ids; changing it orphans existing points
_POINT_ID_NAMESPACE = uuid.UUID("6f1c0a52-3d0e-4c43-9a53-6c1f3f0f7a10")

_NAMESPACE_KEY = "namespace"
_RECORD_ID_KEY = "record_id"
_METADATA_KEY = "metadata"
_DOC_ID_KEY = f"{_METADATA_KEY}.doc_id"

_DISTANCES = {
    "cosine": qm.Distance.COSINE,
    "dot": qm.Distance.DOT,
    "euclid": qm.Distance.EUCLID,
}


def point_id(namespace: str, record_id: str) -> str:
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, f"{namespace}\x00{record_id}"))


@dataclass(frozen=True)
class QdrantConfig:
    url: str
    api_key: Optional[str]
    collection: str
    distance: str = "cosine"
    timeout_s: int = 5


class QdrantProvider(IVectorDBProvider):
    name = "qdrant"

    def __init__(self, config: QdrantConfig, client: Optional[AsyncQdrantClient] = None):
        if config.distance not in _DISTANCES:
            raise ValueError(f"Unsupported distance: {config.distance}")
        self.config = config
        self._client = client
        self._dim: Optional[int] = None
        self._collection_lock = asyncio.Lock()
        logger.info(
            "QdrantProvider created: url=%s collection=%s distance=%s",
            self.config.url,
            self.config.collection,
            self.config.distance,
        )

    async def initialize(self) -> None:
        try:
            if self._client is None:
                self._client = AsyncQdrantClient(
                    url=self.config.url,
                    api_key=self.config.api_key,
                    timeout=self.config.timeout_s,
                )
            if await self._client.collection_exists(self.config.collection):
                self._dim = await self._collection_dim()
            logger.info(
                "✓ Qdrant initialized: %s (collection=%s dim=%s)",
                self.config.url,
                self.config.collection,
                self._dim,
            )
        except Exception as e:
            logger.error("Qdrant init failed: %s", str(e), exc_info=True)
            raise

    # ------------------------------------------------------------------
    # Collection management
    # ------------------------------------------------------------------

    async def _collection_dim(self) -> Optional[int]:
        info = await self._client.get_collection(self.config.collection)
        vectors = info.config.params.vectors
        size = getattr(vectors, "size", None)
        return int(size) if size is not None else None

    async def _ensure_collection(self, dim: int) -> None:
        async with self._collection_lock:
            if self._dim is None:
                if not await self._client.collection_exists(self.config.collection):
                    await self._client.create_collection(
                        collection_name=self.config.collection,
                        vectors_config=qm.VectorParams(
                            size=dim, distance=_DISTANCES[self.config.distance]
                        ),
                    )
                    await self._client.create_payload_index(
                        collection_name=self.config.collection,
                        field_name=_NAMESPACE_KEY,
                        field_schema=qm.KeywordIndexParams(
                            type=qm.KeywordIndexType.KEYWORD, is_tenant=True
                        ),
                    )
                    await self._client.create_payload_index(
                        collection_name=self.config.collection,
                        field_name=_DOC_ID_KEY,
                        field_schema=qm.PayloadSchemaType.KEYWORD,
                    )
                    logger.info(
                        "Created Qdrant collection %s (dim=%s)", self.config.collection, dim
                    )
                    self._dim = dim
                else:
                    self._dim = await self._collection_dim()

        self._check_dim(dim)

    async def _resolve_dim(self) -> Optional[int]:
        """
        Collection dimension, re-read from Qdrant until one is known.

        Another process may create the shared collection after this one
        started, so "no collection" is never cached.
        """
        if self._dim is None:
            client = self._require_client()
            if await client.collection_exists(self.config.collection):
                self._dim = await self._collection_dim()
        return self._dim

    def _check_dim(self, dim: int) -> None:
        if self._dim is not None and self._dim != dim:
            raise DimensionMismatchError(
                f"collection '{self.config.collection}' holds {self._dim}-d vectors, got {dim}-d",
                context={"collection": self.config.collection, "expected": self._dim, "got": dim},
                component="vectordb",
            )

    def _require_client(self) -> AsyncQdrantClient:
        if self._client is None:
            raise RuntimeError("QdrantProvider not initialized")
        return self._client

    @staticmethod
    def _namespace_condition(namespace: str) -> qm.FieldCondition:
        return qm.FieldCondition(key=_NAMESPACE_KEY, match=qm.MatchValue(value=namespace))

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
        client = self._require_client()
        if not ids:
            return
        if len(ids) != len(vectors):
            raise ValueError("ids and vectors length mismatch")
        if metadatas is not None and len(metadatas) != len(ids):
            raise ValueError("metadatas length mismatch")

        dim = len(vectors[0])
        if any(len(v) != dim for v in vectors):
            raise ValueError("inconsistent vector dimensions in batch")
        await self._ensure_collection(dim)

        points = []
        for i, record_id in enumerate(ids):
            points.append(
                qm.PointStruct(
                    id=point_id(namespace, record_id),
                    vector=list(vectors[i]),
                    payload={
                        _NAMESPACE_KEY: namespace,
                        _RECORD_ID_KEY: record_id,
                        _METADATA_KEY: (metadatas[i] if metadatas else {}) or {},
                    },
                )
            )

        await client.upsert(collection_name=self.config.collection, points=points, wait=True)
        logger.debug("Qdrant upsert: namespace=%s items=%d", namespace, len(points))

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        client = self._require_client()
        if await self._resolve_dim() is None:
            # no collection yet; no namespace can have matches
            return []
        self._check_dim(len(vector))

        response = await client.query_points(
            collection_name=self.config.collection,
            query=list(vector),
            query_filter=qm.Filter(must=[self._namespace_condition(namespace)]),
            limit=int(top_k),
            with_payload=True,
            score_threshold=score_threshold if self.config.distance != "euclid" else None,
        )

        out: List[Dict[str, Any]] = []
        for point in response.points:
            payload = point.payload or {}
            if payload.get(_NAMESPACE_KEY) != namespace:
                continue
            score = float(point.score)
            if self.config.distance == "euclid":
                # Qdrant reports the raw distance; flip to higher-is-better
                score = 1.0 / (1.0 + score)
                if score_threshold is not None and score < score_threshold:
                    continue
            out.append(
                {
                    "id": str(payload.get(_RECORD_ID_KEY, point.id)),
                    "score": score,
                    "metadata": dict(payload.get(_METADATA_KEY) or {}) if include_metadata else None,
                }
            )
        return out

    async def delete(self, namespace: str, ids: List[str]) -> None:
        client = self._require_client()
        if not ids or await self._resolve_dim() is None:
            return
        await client.delete(
            collection_name=self.config.collection,
            points_selector=qm.PointIdsList(points=[point_id(namespace, i) for i in ids]),
            wait=True,
        )

    async def delete_document(
        self,
        namespace: str,
        doc_id: str,
        keep_ids: Optional[Sequence[str]] = None,
    ) -> None:
        client = self._require_client()
        if await self._resolve_dim() is None:
            return
        must_not = []
        if keep_ids:
            must_not.append(qm.HasIdCondition(has_id=[point_id(namespace, i) for i in keep_ids]))

        await client.delete(
            collection_name=self.config.collection,
            points_selector=qm.FilterSelector(
                filter=qm.Filter(
                    must=[
                        self._namespace_condition(namespace),
                        qm.FieldCondition(key=_DOC_ID_KEY, match=qm.MatchValue(value=doc_id)),
                    ],
                    must_not=must_not or None,
                )
            ),
            wait=True,
        )

    async def delete_all(self, namespace: str) -> None:
        client = self._require_client()
        if await self._resolve_dim() is None:
            return
        await client.delete(
            collection_name=self.config.collection,
            points_selector=qm.FilterSelector(
                filter=qm.Filter(must=[self._namespace_condition(namespace)])
            ),
            wait=True,
        )
        logger.info("Qdrant namespace cleared: %s", namespace)

    async def count(self, namespace: str) -> int:
        client = self._require_client()
        if await self._resolve_dim() is None:
            return 0
        result = await client.count(
            collection_name=self.config.collection,
            count_filter=qm.Filter(must=[self._namespace_condition(namespace)]),
            exact=True,
        )
        return int(result.count)

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._client = None
        logger.info("QdrantProvider shutdown complete")


def build_provider(settings) -> QdrantProvider:
    return QdrantProvider(
        QdrantConfig(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            collection=settings.qdrant_collection_name,
            distance=settings.vector_db_distance,
            timeout_s=max(1, int(settings.vector_db_timeout)),
        )
    )


__all__ = ["QdrantConfig", "QdrantProvider", "point_id", "build_provider"]
