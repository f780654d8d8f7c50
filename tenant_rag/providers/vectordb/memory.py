"""
FILE: tenant_rag/providers/vectordb/memory.py

In-memory vector index.

Design:
- namespace -> insertion-ordered {id: (vector, metadata)}
- one dimension per namespace, fixed by its first upsert and released when
  the namespace becomes empty
- brute-force scoring with numpy; ties keep insertion order
- a single asyncio.Lock serializes writers, standing in for the external
  index's own per-namespace consistency

Used by tests and local development (VECTORDB_PROVIDER=memory). Data does
not survive a restart.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from tenant_rag.core.exceptions import DimensionMismatchError

from .base import IVectorDBProvider

logger = logging.getLogger(__name__)


@dataclass
class _Namespace:
    dim: int
    records: Dict[str, Tuple[np.ndarray, Dict[str, Any]]] = field(default_factory=dict)


def _score(metric: str, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    if metric == "dot":
        return matrix @ query
    if metric == "euclid":
        # higher is better for every metric
        distances = np.linalg.norm(matrix - query, axis=1)
        return 1.0 / (1.0 + distances)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return scores


class InMemoryVectorDBProvider(IVectorDBProvider):
    """Namespace-partitioned in-memory index."""

    name = "memory"

    def __init__(self, metric: str = "cosine") -> None:
        if metric not in ("cosine", "dot", "euclid"):
            raise ValueError(f"Unsupported metric: {metric}")
        self.metric = metric
        self._namespaces: Dict[str, _Namespace] = {}
        self._lock = asyncio.Lock()
        logger.info("InMemoryVectorDBProvider created (metric=%s)", metric)

    async def initialize(self) -> None:
        logger.info("✓ InMemoryVectorDBProvider initialized")

    def _check_dim(self, namespace: str, ns: _Namespace, dim: int) -> None:
        if ns.dim != dim:
            raise DimensionMismatchError(
                f"namespace '{namespace}' holds {ns.dim}-d vectors, got {dim}-d",
                context={"namespace": namespace, "expected": ns.dim, "got": dim},
                component="vectordb",
            )

    async def upsert(
        self,
        namespace: str,
        ids: List[str],
        vectors: List[List[float]],
        metadatas: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        if not ids:
            return
        if len(ids) != len(vectors):
            raise ValueError("ids and vectors length mismatch")
        if metadatas is not None and len(metadatas) != len(ids):
            raise ValueError("metadatas length mismatch")

        dim = len(vectors[0])
        if any(len(v) != dim for v in vectors):
            raise ValueError("inconsistent vector dimensions in batch")

        async with self._lock:
            ns = self._namespaces.get(namespace)
            if ns is None:
                ns = _Namespace(dim=dim)
            self._check_dim(namespace, ns, dim)

            for i, record_id in enumerate(ids):
                meta = dict(metadatas[i]) if metadatas else {}
                ns.records[str(record_id)] = (np.asarray(vectors[i], dtype=np.float64), meta)
            self._namespaces[namespace] = ns

        logger.debug("Memory upsert: namespace=%s items=%d", namespace, len(ids))

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
        include_metadata: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        ns = self._namespaces.get(namespace)
        if ns is None or not ns.records:
            return []
        self._check_dim(namespace, ns, len(vector))

        ids = list(ns.records.keys())
        matrix = np.vstack([ns.records[i][0] for i in ids])
        scores = _score(self.metric, matrix, np.asarray(vector, dtype=np.float64))

        # stable sort keeps insertion order for equal scores
        order = np.argsort(-scores, kind="stable")

        results: List[Dict[str, Any]] = []
        for idx in order:
            score = float(scores[idx])
            if score_threshold is not None and score < score_threshold:
                continue
            record_id = ids[idx]
            results.append(
                {
                    "id": record_id,
                    "score": score,
                    "metadata": dict(ns.records[record_id][1]) if include_metadata else None,
                }
            )
            if len(results) >= top_k:
                break
        return results

    async def delete(self, namespace: str, ids: List[str]) -> None:
        async with self._lock:
            ns = self._namespaces.get(namespace)
            if ns is None:
                return
            for record_id in ids:
                ns.records.pop(str(record_id), None)
            self._drop_if_empty(namespace)

    async def delete_document(
        self,
        namespace: str,
        doc_id: str,
        keep_ids: Optional[Sequence[str]] = None,
    ) -> None:
        keep = set(keep_ids or ())
        async with self._lock:
            ns = self._namespaces.get(namespace)
            if ns is None:
                return
            doomed = [
                record_id
                for record_id, (_, meta) in ns.records.items()
                if meta.get("doc_id") == doc_id and record_id not in keep
            ]
            for record_id in doomed:
                del ns.records[record_id]
            self._drop_if_empty(namespace)

    async def delete_all(self, namespace: str) -> None:
        async with self._lock:
            self._namespaces.pop(namespace, None)
        logger.info("Memory namespace cleared: %s", namespace)

    async def count(self, namespace: str) -> int:
        ns = self._namespaces.get(namespace)
        return len(ns.records) if ns else 0

    def _drop_if_empty(self, namespace: str) -> None:
        ns = self._namespaces.get(namespace)
        if ns is not None and not ns.records:
            del self._namespaces[namespace]

    async def shutdown(self) -> None:
        self._namespaces.clear()
        logger.info("InMemoryVectorDBProvider shutdown complete")


def build_provider(settings) -> InMemoryVectorDBProvider:
    return InMemoryVectorDBProvider(metric=settings.vector_db_distance)


__all__ = ["InMemoryVectorDBProvider", "build_provider"]
