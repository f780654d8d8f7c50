"""
HTTP API tests: routes, error mapping and request ids, over in-process fakes.
"""

import httpx
import pytest
import pytest_asyncio

from tenant_rag.api.main import create_app


@pytest_asyncio.fixture
async def client(settings, container):
    app = create_app(settings=settings, container=container)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


async def _index(client, tenant, doc_id, content):
    response = await client.put(
        f"/api/v1/tenants/{tenant}/documents/{doc_id}", json={"content": content}
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestDocumentRoutes:

    @pytest.mark.asyncio
    async def test_index_then_search(self, client):
        body = await _index(client, "acme", "A", "alpha content")
        assert body == {"namespace": "acme", "doc_id": "A", "vector_ids": ["A"], "dimension": 8}

        response = await client.post(
            "/api/v1/tenants/acme/search", json={"query": "alpha content", "top_k": 3}
        )
        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["id"] == "A"
        assert results[0]["metadata"]["text"] == "alpha content"

    @pytest.mark.asyncio
    async def test_delete_document(self, client):
        await _index(client, "acme", "A", "alpha")

        response = await client.delete("/api/v1/tenants/acme/documents/A")
        assert response.status_code == 200
        assert response.json() == {"status": "deleted", "tenant_id": "acme", "doc_id": "A"}

        response = await client.post("/api/v1/tenants/acme/search", json={"query": "alpha"})
        assert response.json()["results"] == []

    @pytest.mark.asyncio
    async def test_delete_all(self, client):
        await _index(client, "acme", "A", "alpha")
        await _index(client, "acme", "B", "beta")

        response = await client.delete("/api/v1/tenants/acme/documents")
        assert response.status_code == 200

        response = await client.post("/api/v1/tenants/acme/search", json={"query": "alpha"})
        assert response.json()["results"] == []

    @pytest.mark.asyncio
    async def test_delete_accepts_timeout(self, client):
        await _index(client, "acme", "A", "alpha")

        response = await client.delete("/api/v1/tenants/acme/documents/A", params={"timeout": 5})
        assert response.status_code == 200

        response = await client.delete("/api/v1/tenants/acme/documents", params={"timeout": 5})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_rejects_non_positive_timeout(self, client):
        response = await client.delete("/api/v1/tenants/acme/documents", params={"timeout": 0})
        assert response.status_code == 422


class TestQueryRoute:

    @pytest.mark.asyncio
    async def test_answer(self, client):
        await _index(client, "acme", "A", "alpha")

        response = await client.post(
            "/api/v1/tenants/acme/query", json={"query": "alpha", "model": "gemini-2.0-flash"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "gemini:gemini-2.0-flash answer"
        assert body["provider"] == "gemini"
        assert [s["id"] for s in body["sources"]] == ["A"]

    @pytest.mark.asyncio
    async def test_unknown_model_is_422(self, client):
        response = await client.post(
            "/api/v1/tenants/acme/query", json={"query": "alpha", "model": "nope"}
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "UNSUPPORTED_MODEL"

    @pytest.mark.asyncio
    async def test_provider_failure_is_502(self, client, llms):
        llms["openai"].error = RuntimeError("rate limited")

        response = await client.post("/api/v1/tenants/acme/query", json={"query": "alpha"})
        assert response.status_code == 502
        body = response.json()
        assert body["error_code"] == "PROVIDER_ERROR"
        assert "context" not in body


class TestErrors:

    @pytest.mark.asyncio
    async def test_invalid_tenant_is_400(self, client):
        response = await client.post("/api/v1/tenants/bad%20tenant/search", json={"query": "x"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_TENANT"

    @pytest.mark.asyncio
    async def test_top_k_above_max_is_400(self, client):
        response = await client.post(
            "/api/v1/tenants/acme/search", json={"query": "x", "top_k": 1000}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_deadline_is_504(self, client, embedder):
        embedder.delay = 0.5
        response = await client.post(
            "/api/v1/tenants/acme/search", json={"query": "x", "timeout": 0.02}
        )
        assert response.status_code == 504
        assert response.json()["error_code"] == "CANCELED"

    @pytest.mark.asyncio
    async def test_request_id_round_trip(self, client):
        response = await client.post(
            "/api/v1/tenants/bad%20tenant/search",
            json={"query": "x"},
            headers={"X-Request-ID": "req-123"},
        )
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["request_id"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/api/v1/health")
        assert response.headers["X-Request-ID"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/v1/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["providers"]["llm"] == ["gemini", "openai"]
        assert body["providers"]["vectordb"] == "memory"
