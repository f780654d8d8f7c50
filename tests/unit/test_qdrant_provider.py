"""
QdrantProvider against qdrant-client's in-process local mode.
"""

import pytest
import pytest_asyncio
from qdrant_client import AsyncQdrantClient

from tenant_rag.core.exceptions import DimensionMismatchError
from tenant_rag.providers.vectordb.qdrant import QdrantConfig, QdrantProvider, point_id


@pytest_asyncio.fixture
async def qdrant():
    provider = QdrantProvider(
        QdrantConfig(url=":memory:", api_key=None, collection="test_docs"),
        client=AsyncQdrantClient(location=":memory:"),
    )
    await provider.initialize()
    yield provider
    await provider.shutdown()


class TestQdrantProvider:

    def test_point_ids_differ_per_namespace(self):
        assert point_id("t1", "A") != point_id("t2", "A")
        assert point_id("t1", "A") == point_id("t1", "A")

    @pytest.mark.asyncio
    async def test_empty_collection(self, qdrant):
        assert await qdrant.query("t", [1.0, 0.0], top_k=3) == []
        assert await qdrant.count("t") == 0
        await qdrant.delete_all("t")

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self, qdrant):
        await qdrant.upsert("t1", ["A"], [[1.0, 0.0]], [{"doc_id": "A", "text": "one"}])
        await qdrant.upsert("t2", ["A"], [[1.0, 0.0]], [{"doc_id": "A", "text": "two"}])

        hits = await qdrant.query("t1", [1.0, 0.0], top_k=5)
        assert [(h["id"], h["metadata"]["text"]) for h in hits] == [("A", "one")]
        assert await qdrant.count("t2") == 1

    @pytest.mark.asyncio
    async def test_upsert_overwrites(self, qdrant):
        await qdrant.upsert("t", ["A"], [[1.0, 0.0]], [{"doc_id": "A"}])
        await qdrant.upsert("t", ["A"], [[0.0, 1.0]], [{"doc_id": "A"}])

        assert await qdrant.count("t") == 1
        hits = await qdrant.query("t", [0.0, 1.0], top_k=1)
        assert hits[0]["score"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_delete_document_keeps_listed_chunks(self, qdrant):
        await qdrant.upsert(
            "t",
            ["doc#0", "doc#1", "doc#2", "other"],
            [[1.0, 0.0], [0.9, 0.1], [0.8, 0.2], [0.0, 1.0]],
            [{"doc_id": "doc"}, {"doc_id": "doc"}, {"doc_id": "doc"}, {"doc_id": "other"}],
        )

        await qdrant.delete_document("t", "doc", keep_ids=["doc#0"])

        hits = await qdrant.query("t", [1.0, 0.0], top_k=10)
        assert sorted(h["id"] for h in hits) == ["doc#0", "other"]

    @pytest.mark.asyncio
    async def test_delete_all_only_touches_one_namespace(self, qdrant):
        await qdrant.upsert("t1", ["A"], [[1.0, 0.0]])
        await qdrant.upsert("t2", ["B"], [[1.0, 0.0]])

        await qdrant.delete_all("t1")

        assert await qdrant.count("t1") == 0
        assert await qdrant.count("t2") == 1

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, qdrant):
        await qdrant.upsert("t", ["A"], [[1.0, 0.0]])
        with pytest.raises(DimensionMismatchError):
            await qdrant.upsert("t", ["B"], [[1.0, 0.0, 0.0]])
        with pytest.raises(DimensionMismatchError):
            await qdrant.query("t", [1.0, 0.0, 0.0], top_k=1)

    @pytest.mark.asyncio
    async def test_collection_created_by_another_process(self):
        shared = AsyncQdrantClient(location=":memory:")
        config = QdrantConfig(url=":memory:", api_key=None, collection="shared_docs")
        reader = QdrantProvider(config, client=shared)
        writer = QdrantProvider(config, client=shared)
        await reader.initialize()
        await writer.initialize()

        # reader started before the collection existed
        assert await reader.count("t") == 0
        await writer.upsert(
            "t", ["A", "B"], [[1.0, 0.0], [0.0, 1.0]], [{"doc_id": "A"}, {"doc_id": "B"}]
        )

        hits = await reader.query("t", [1.0, 0.0], top_k=5)
        assert [h["id"] for h in hits] == ["A", "B"]
        assert await reader.count("t") == 2

        await reader.delete_document("t", "A")
        assert await writer.count("t") == 1

        await reader.delete_all("t")
        assert await writer.count("t") == 0

        await shared.close()
