"""
================================================================================
SERVICE CONTAINER - PROVIDER DISCOVERY & INITIALIZATION
================================================================================

Main dependency injection container. Built ONCE at process start and passed
by reference; nothing in the core reaches for a module-level client.

Implements TWO-LAYER SWAPPABILITY:

Layer 1: .env determines which PROVIDER FILE to import
  Example: EMBEDDINGS_PROVIDER=gemini  →  tenant_rag.providers.embeddings.gemini

Layer 2: Provider file turns Settings into a configured instance
  Example: tenant_rag/providers/embeddings/gemini.py exposes
           build_provider(settings) -> GeminiEmbeddingsProvider

USAGE:

  container = ServiceContainer(settings)
  await container.initialize()
  embeddings = container.get_embeddings()
  llms = container.get_llm_providers()

FLOW:

  .env: VECTORDB_PROVIDER=qdrant
    ↓
  ServiceContainer reads settings.vector_db_provider = "qdrant"
    ↓
  Dynamically import: tenant_rag.providers.vectordb.qdrant
    ↓
  Call: build_provider(settings)  (QdrantProvider with settings baked in)
    ↓
  Initialize: await provider.initialize()
    ↓
  Return to application

Pre-built providers may be passed to the constructor (tests, embedding
applications); those skip Layer 1/2 but are still initialized here.
"""

import importlib
import logging
from typing import Any, Dict, Optional

from tenant_rag.config.settings import Settings
from tenant_rag.core.exceptions import ServiceInitializationError
from tenant_rag.providers.cache.base import ICacheProvider
from tenant_rag.providers.embeddings.base import IEmbeddingsProvider
from tenant_rag.providers.embeddings.cached import CachedEmbeddingsProvider
from tenant_rag.providers.llm.base import ILLMProvider
from tenant_rag.providers.vectordb.base import IVectorDBProvider

logger = logging.getLogger(__name__)

# CACHE_PROVIDER value -> provider module name
_CACHE_MODULES = {"redis": "redis"}


class ServiceContainer:
    """
    Dependency injection container for all providers.

    Implements two-layer swappability:
    - Layer 1 (.env): Select provider TYPE
    - Layer 2 (provider file): build_provider(settings)
    """

    def __init__(
        self,
        settings: Settings,
        embeddings_provider: Optional[IEmbeddingsProvider] = None,
        vectordb_provider: Optional[IVectorDBProvider] = None,
        llm_providers: Optional[Dict[str, ILLMProvider]] = None,
        cache_provider: Optional[ICacheProvider] = None,
    ) -> None:
        """
        Initialize container with settings.

        Args:
            settings: Configuration object (from .env)
            embeddings_provider: Optional pre-built embeddings provider
            vectordb_provider: Optional pre-built vector index provider
            llm_providers: Optional pre-built completion providers by name
            cache_provider: Optional pre-built embedding cache
        """
        self.settings = settings

        self._embeddings: Optional[IEmbeddingsProvider] = embeddings_provider
        self._vectordb: Optional[IVectorDBProvider] = vectordb_provider
        self._llms: Dict[str, ILLMProvider] = dict(llm_providers or {})
        self._cache: Optional[ICacheProvider] = cache_provider
        self._initialized = False

        logger.info("ServiceContainer instantiated")

    async def initialize(self) -> None:
        """
        Initialize all providers.

        Layer 1: Reads settings to determine provider file
        Layer 2: Imports provider file and calls build_provider(settings)
        """
        if self._initialized:
            return
        try:
            logger.info("=" * 80)
            logger.info("INITIALIZING SERVICE CONTAINER")
            logger.info("=" * 80)

            # Embeddings
            if self._embeddings is None:
                self._embeddings = self._build(
                    "embeddings", self.settings.embeddings_provider, "tenant_rag.providers.embeddings"
                )
            await self._start("embeddings", self._embeddings)

            # Cache (caller-side, wraps the embedder)
            if self._cache is None and self.settings.cache_provider != "none":
                self._cache = self._build(
                    "cache",
                    _CACHE_MODULES[self.settings.cache_provider],
                    "tenant_rag.providers.cache",
                )
            if self._cache is not None:
                await self._start("cache", self._cache)
                self._embeddings = CachedEmbeddingsProvider(
                    inner=self._embeddings,
                    cache=self._cache,
                    model=self.settings.embeddings_model_name,
                    dimension=self.settings.embeddings_dimension,
                    ttl=self.settings.cache_ttl_default,
                )

            # VectorDB
            if self._vectordb is None:
                self._vectordb = self._build(
                    "vectordb", self.settings.vector_db_provider, "tenant_rag.providers.vectordb"
                )
            await self._start("vectordb", self._vectordb)

            # Completion providers (one per LLM_PROVIDERS entry)
            for name in self.settings.llm_providers:
                if name not in self._llms:
                    self._llms[name] = self._build("llm", name, "tenant_rag.providers.llm")
            for name, provider in self._llms.items():
                await self._start(f"llm:{name}", provider)

            self._initialized = True
            logger.info("=" * 80)
            logger.info("✓ ServiceContainer initialized successfully")
            logger.info("=" * 80)

        except ServiceInitializationError:
            raise
        except Exception as e:
            logger.error("ServiceContainer initialization failed: %s", str(e), exc_info=True)
            raise ServiceInitializationError(f"Failed to initialize container: {str(e)}") from e

    def _build(self, provider_type: str, provider_name: str, module_path: str) -> Any:
        """
        Layer 1 + Layer 2: import the provider module and call its factory.

        Args:
            provider_type: Type (embeddings, vectordb, llm, cache)
            provider_name: Name from settings (gemini, openai, qdrant, ...)
            module_path: Import base path (tenant_rag.providers.llm, ...)
        """
        full_path = f"{module_path}.{provider_name}"
        logger.info("[Layer 1] Loading %s provider: %s (%s)", provider_type, provider_name, full_path)

        try:
            provider_module = importlib.import_module(full_path)
        except ImportError as e:
            raise ServiceInitializationError(
                f"Failed to import {provider_type} provider '{provider_name}' from {full_path}: {e}",
                context={"provider_type": provider_type, "provider": provider_name},
            ) from e

        factory = getattr(provider_module, "build_provider", None)
        if factory is None:
            raise ServiceInitializationError(
                f"Provider module {full_path} does not export 'build_provider(settings)'",
                context={"provider_type": provider_type, "provider": provider_name},
            )

        try:
            instance = factory(self.settings)
        except Exception as e:
            raise ServiceInitializationError(
                f"Failed to build {provider_type} provider '{provider_name}': {e}",
                context={"provider_type": provider_type, "provider": provider_name},
            ) from e

        logger.info("[Layer 2] Built %s", instance.__class__.__name__)
        return instance

    async def _start(self, label: str, provider: Any) -> None:
        try:
            await provider.initialize()
        except Exception as e:
            raise ServiceInitializationError(
                f"Failed to initialize {label} provider {provider.__class__.__name__}: {e}",
                context={"provider": label},
            ) from e
        logger.info("✓ %s initialized: %s", label.upper(), getattr(provider, "name", label))

    async def shutdown(self) -> None:
        """Shutdown all providers."""
        logger.info("Shutting down ServiceContainer...")

        providers = [("Embeddings", self._embeddings), ("VectorDB", self._vectordb)]
        providers += [(f"LLM:{name}", p) for name, p in self._llms.items()]
        # the cached embedder already shuts its cache down
        if not isinstance(self._embeddings, CachedEmbeddingsProvider):
            providers.append(("Cache", self._cache))

        for name, provider in providers:
            if provider is None:
                continue
            try:
                await provider.shutdown()
                logger.info("✓ %s shutdown complete", name)
            except Exception as e:
                logger.error("Error shutting down %s: %s", name, str(e))

        self._initialized = False
        logger.info("✓ ServiceContainer shutdown complete")

    # ========================================================================
    # ACCESSOR METHODS
    # ========================================================================

    def get_embeddings(self) -> IEmbeddingsProvider:
        """Get Embeddings provider instance."""
        if self._embeddings is None:
            raise RuntimeError("Embeddings provider not initialized")
        return self._embeddings

    def get_vector_db(self) -> IVectorDBProvider:
        """Get VectorDB provider instance."""
        if self._vectordb is None:
            raise RuntimeError("VectorDB provider not initialized")
        return self._vectordb

    def get_llm_providers(self) -> Dict[str, ILLMProvider]:
        """All registered completion providers by name."""
        return dict(self._llms)

    def describe(self) -> Dict[str, Any]:
        """Active provider names (health endpoint)."""
        return {
            "initialized": self._initialized,
            "embeddings": getattr(self._embeddings, "name", None),
            "vectordb": getattr(self._vectordb, "name", None),
            "llm": sorted(self._llms),
            "cache": getattr(self._cache, "name", None) if self._cache else None,
        }
