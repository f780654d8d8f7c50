"""
Unit tests for EmbeddingsHandler error translation and response checks.
"""

import asyncio

import pytest

from tenant_rag.core.embeddings_handler import EmbeddingsHandler
from tenant_rag.core.exceptions import (
    CanceledError,
    DimensionMismatchError,
    ProviderError,
    RecoverableException,
)
from tenant_rag.utils.deadline import Deadline
from tests.conftest import DIM, FakeEmbeddings, build_settings


class _ReturnsGarbage(FakeEmbeddings):
    def __init__(self, payload):
        super().__init__()
        self.payload = payload

    async def embed_texts(self, texts):
        return self.payload


class TestEmbeddingsHandler:

    @pytest.mark.asyncio
    async def test_returns_vectors_in_order(self, settings):
        provider = FakeEmbeddings(vectors={"a": [1.0] * DIM, "b": [2.0] * DIM})
        handler = EmbeddingsHandler(provider, settings)
        assert await handler.embed_texts(["b", "a"]) == [[2.0] * DIM, [1.0] * DIM]

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_provider_error(self, settings):
        provider = FakeEmbeddings()
        provider.error = ConnectionError("upstream down")
        handler = EmbeddingsHandler(provider, settings)

        with pytest.raises(ProviderError) as exc_info:
            await handler.embed_query("hello")
        assert isinstance(exc_info.value, RecoverableException)
        assert exc_info.value.component == "embeddings"
        assert "upstream down" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [[], [[]], [[1.0] * DIM, [1.0] * DIM], [["x"] * DIM], None],
    )
    async def test_malformed_response_is_provider_error(self, settings, payload):
        handler = EmbeddingsHandler(_ReturnsGarbage(payload), settings)
        with pytest.raises(ProviderError):
            await handler.embed_query("hello")

    @pytest.mark.asyncio
    async def test_wrong_dimension(self, settings):
        handler = EmbeddingsHandler(FakeEmbeddings(dim=DIM + 1), settings)
        with pytest.raises(DimensionMismatchError):
            await handler.embed_query("hello")

    @pytest.mark.asyncio
    async def test_dimension_check_disabled(self):
        handler = EmbeddingsHandler(FakeEmbeddings(dim=3), build_settings(EMBEDDINGS_DIMENSION=0))
        assert len(await handler.embed_query("hello")) == 3

    @pytest.mark.asyncio
    async def test_caller_deadline_is_canceled_error(self, settings):
        provider = FakeEmbeddings()
        provider.delay = 0.5
        handler = EmbeddingsHandler(provider, settings)

        with pytest.raises(CanceledError):
            await handler.embed_query("hello", deadline=Deadline(0.02))

    @pytest.mark.asyncio
    async def test_per_call_cap_is_provider_error(self):
        provider = FakeEmbeddings()
        provider.delay = 0.5
        handler = EmbeddingsHandler(provider, build_settings(EMBEDDINGS_TIMEOUT=0.1))

        with pytest.raises(ProviderError):
            await handler.embed_query("hello", deadline=Deadline(30))

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self, settings):
        provider = FakeEmbeddings()
        provider.delay = 5
        handler = EmbeddingsHandler(provider, settings)

        task = asyncio.ensure_future(handler.embed_query("hello"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
