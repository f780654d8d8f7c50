"""
PineconeProvider against an in-process fake of the Pinecone Index object.
"""

from types import SimpleNamespace

import numpy as np
import pytest
from pinecone.exceptions import NotFoundException

from tenant_rag.container.service_container import ServiceContainer
from tenant_rag.core.exceptions import DimensionMismatchError
from tenant_rag.providers.vectordb.pinecone import PineconeConfig, PineconeProvider
from tests.conftest import FakeEmbeddings, FakeLLM, build_settings


class FakeIndex:
    """Keeps {namespace: {id: (values, metadata)}} and mimics the SDK's replies."""

    def __init__(self, metric="cosine", list_page_size=2):
        self.metric = metric
        self.list_page_size = list_page_size
        self.namespaces = {}
        self.calls = []

    def _ns(self, namespace):
        if namespace not in self.namespaces:
            raise NotFoundException()
        return self.namespaces[namespace]

    def upsert(self, vectors, namespace):
        self.calls.append(("upsert", namespace, len(vectors)))
        records = self.namespaces.setdefault(namespace, {})
        for v in vectors:
            records[v["id"]] = (list(v["values"]), dict(v["metadata"]))

    def query(self, vector, top_k, namespace, include_metadata):
        self.calls.append(("query", namespace, top_k))
        q = np.asarray(vector)
        matches = []
        for record_id, (values, metadata) in self.namespaces.get(namespace, {}).items():
            v = np.asarray(values)
            if self.metric == "euclidean":
                score = float(np.sum((v - q) ** 2))
            else:
                score = float(v @ q)
            matches.append(
                SimpleNamespace(
                    id=record_id, score=score, metadata=metadata if include_metadata else None
                )
            )
        matches.sort(key=lambda m: m.score, reverse=self.metric != "euclidean")
        return SimpleNamespace(matches=matches[:top_k])

    def delete(self, ids=None, delete_all=False, namespace=""):
        self.calls.append(("delete", namespace, "all" if delete_all else sorted(ids)))
        records = self._ns(namespace)
        if delete_all:
            del self.namespaces[namespace]
            return
        for record_id in ids:
            records.pop(record_id, None)

    def list(self, prefix, namespace):
        matching = sorted(i for i in self._ns(namespace) if i.startswith(prefix))
        for start in range(0, len(matching), self.list_page_size):
            yield matching[start:start + self.list_page_size]

    def fetch(self, ids, namespace):
        records = self._ns(namespace)
        return SimpleNamespace(
            vectors={
                i: SimpleNamespace(id=i, metadata=records[i][1]) for i in ids if i in records
            }
        )

    def describe_index_stats(self):
        return SimpleNamespace(
            namespaces={
                ns: SimpleNamespace(vector_count=len(records))
                for ns, records in self.namespaces.items()
            }
        )


def _provider(index, metric="cosine"):
    return PineconeProvider(
        PineconeConfig(api_key=None, index_name="docs"), index=index, dimension=2, metric=metric
    )


@pytest.fixture
def index():
    return FakeIndex()


@pytest.fixture
def provider(index):
    return _provider(index)


class TestPineconeProvider:

    @pytest.mark.asyncio
    async def test_upsert_and_query_use_the_namespace(self, provider, index):
        await provider.upsert("t1", ["A"], [[1.0, 0.0]], [{"doc_id": "A", "text": "one"}])
        await provider.upsert("t2", ["A"], [[1.0, 0.0]], [{"doc_id": "A", "text": "two"}])

        hits = await provider.query("t1", [1.0, 0.0], top_k=5)

        assert hits == [{"id": "A", "score": 1.0, "metadata": {"doc_id": "A", "text": "one"}}]
        assert ("query", "t1", 5) in index.calls

    @pytest.mark.asyncio
    async def test_unknown_namespace_is_empty(self, provider):
        assert await provider.query("nobody", [1.0, 0.0], top_k=3) == []
        assert await provider.count("nobody") == 0
        await provider.delete_all("nobody")
        await provider.delete_document("nobody", "A")
        await provider.delete("nobody", ["A"])

    @pytest.mark.asyncio
    async def test_upsert_is_batched(self, provider, index):
        ids = [f"d{i}" for i in range(250)]
        await provider.upsert("t", ids, [[1.0, 0.0]] * 250)

        assert [c[2] for c in index.calls if c[0] == "upsert"] == [100, 100, 50]
        assert await provider.count("t") == 250

    @pytest.mark.asyncio
    async def test_delete_all_uses_native_namespace_delete(self, provider, index):
        await provider.upsert("t1", ["A", "B"], [[1.0, 0.0], [0.0, 1.0]])
        await provider.upsert("t2", ["A"], [[1.0, 0.0]])

        await provider.delete_all("t1")

        assert ("delete", "t1", "all") in index.calls
        assert await provider.count("t1") == 0
        assert await provider.count("t2") == 1

    @pytest.mark.asyncio
    async def test_delete_document_confirms_doc_id(self, provider):
        await provider.upsert(
            "t",
            ["doc#0", "doc#1", "doc#2", "doc2", "doc#x"],
            [[1.0, 0.0]] * 5,
            [
                {"doc_id": "doc"},
                {"doc_id": "doc"},
                {"doc_id": "doc"},
                {"doc_id": "doc2"},
                {"doc_id": "doc#x"},
            ],
        )

        await provider.delete_document("t", "doc", keep_ids=["doc#0"])

        hits = await provider.query("t", [1.0, 0.0], top_k=10)
        assert sorted(h["id"] for h in hits) == ["doc#0", "doc#x", "doc2"]

    @pytest.mark.asyncio
    async def test_euclidean_scores_are_flipped(self):
        index = FakeIndex(metric="euclidean")
        provider = _provider(index, metric="euclidean")
        await provider.upsert("t", ["near", "far"], [[1.0, 0.0], [0.0, 3.0]])

        hits = await provider.query("t", [1.0, 0.0], top_k=2)

        assert [h["id"] for h in hits] == ["near", "far"]
        assert hits[0]["score"] == pytest.approx(1.0)
        assert hits[1]["score"] == pytest.approx(1.0 / 11.0)
        assert provider.metric == "euclid"

    @pytest.mark.asyncio
    async def test_score_threshold(self, provider):
        await provider.upsert("t", ["A", "B"], [[1.0, 0.0], [0.0, 1.0]])
        hits = await provider.query("t", [1.0, 0.0], top_k=5, score_threshold=0.5)
        assert [h["id"] for h in hits] == ["A"]

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, provider, index):
        with pytest.raises(DimensionMismatchError):
            await provider.upsert("t", ["A"], [[1.0, 0.0, 0.0]])
        with pytest.raises(DimensionMismatchError):
            await provider.query("t", [1.0], top_k=1)
        assert index.calls == []

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        provider = PineconeProvider(PineconeConfig(api_key=None, index_name="docs"))
        with pytest.raises(ValueError):
            await provider.initialize()

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        provider = PineconeProvider(PineconeConfig(api_key="k", index_name="docs"))
        with pytest.raises(RuntimeError):
            await provider.count("t")


class TestPineconeSelection:

    def test_container_builds_pinecone_from_settings(self):
        settings = build_settings(
            VECTORDB_PROVIDER="pinecone",
            PINECONE_API_KEY="pc-test",
            PINECONE_INDEX_NAME="chatbot",
        )
        container = ServiceContainer(
            settings,
            embeddings_provider=FakeEmbeddings(),
            llm_providers={"openai": FakeLLM("openai"), "gemini": FakeLLM("gemini")},
        )
        provider = container._build("vectordb", "pinecone", "tenant_rag.providers.vectordb")

        assert isinstance(provider, PineconeProvider)
        assert provider.config == PineconeConfig(
            api_key="pc-test", index_name="chatbot", host=None
        )
        assert settings.to_dict()["pinecone_api_key"] == "***REDACTED***"
