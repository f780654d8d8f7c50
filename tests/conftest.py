"""
Shared test fixtures and configuration for pytest.

Providers are replaced by in-process fakes: the in-memory vector index, a
deterministic embedder and recording completion providers. No test touches
the network.
"""

import asyncio
import hashlib
import logging
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio

from tenant_rag.config.settings import Settings
from tenant_rag.container.service_container import ServiceContainer
from tenant_rag.pipeline.rag import RAGService
from tenant_rag.providers.embeddings.base import IEmbeddingsProvider
from tenant_rag.providers.llm.base import ILLMProvider, Message
from tenant_rag.providers.vectordb.memory import InMemoryVectorDBProvider

logger = logging.getLogger(__name__)

DIM = 8


# ============================================================================
# Fakes
# ============================================================================

def hashed_vector(text: str, dim: int = DIM) -> List[float]:
    """Deterministic pseudo-embedding derived from sha256(text)."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [(digest[i] - 127.5) / 127.5 for i in range(dim)]


class FakeEmbeddings(IEmbeddingsProvider):
    """Looks texts up in `vectors`, falling back to a hashed vector."""

    name = "fake"

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, dim: int = DIM):
        self.vectors = dict(vectors or {})
        self.dim = dim
        self.calls: List[List[str]] = []
        self.error: Optional[Exception] = None
        self.delay: float = 0.0
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [list(self.vectors.get(t) or hashed_vector(t, self.dim)) for t in texts]

    async def shutdown(self) -> None:
        self.initialized = False


class FakeLLM(ILLMProvider):
    """Records every completion request and answers with a fixed text."""

    def __init__(self, name: str):
        self.name = name
        self.calls: List[Tuple[str, List[Message]]] = []
        self.error: Optional[Exception] = None
        self.delay: float = 0.0

    async def initialize(self) -> None:
        pass

    async def complete(self, model: str, messages: List[Message]) -> str:
        self.calls.append((model, messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return f"{self.name}:{model} answer"

    async def shutdown(self) -> None:
        pass


# ============================================================================
# Fixtures
# ============================================================================

def build_settings(**overrides) -> Settings:
    values = {
        "EMBEDDINGS_PROVIDER": "openai",
        "EMBEDDINGS_DIMENSION": DIM,
        "VECTORDB_PROVIDER": "memory",
        "LLM_PROVIDERS": "openai,gemini",
        "OPENAI_MODELS": "gpt-4o,gpt-4o-mini",
        "GEMINI_MODELS": "gemini-2.0-flash",
        "DEFAULT_COMPLETION_MODEL": "gpt-4o",
        "CACHE_PROVIDER": "none",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def embedder() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def vector_index() -> InMemoryVectorDBProvider:
    return InMemoryVectorDBProvider(metric="cosine")


@pytest.fixture
def llms() -> Dict[str, FakeLLM]:
    return {"openai": FakeLLM("openai"), "gemini": FakeLLM("gemini")}


@pytest.fixture
def container(settings, embedder, vector_index, llms) -> ServiceContainer:
    return ServiceContainer(
        settings,
        embeddings_provider=embedder,
        vectordb_provider=vector_index,
        llm_providers=llms,
    )


@pytest_asyncio.fixture
async def service(container, settings) -> RAGService:
    await container.initialize()
    yield RAGService.from_container(container, settings)
    await container.shutdown()
