"""
================================================================================
FILE: tenant_rag/core/embeddings_handler.py
================================================================================

PURPOSE:
    Turns text into embedding vectors through the configured provider, and is
    the ONE place where embedding failures are translated into the core's
    error types.

WORKFLOW:
    1. Receive texts (document content / chunks, or a query)
    2. Call provider.embed_texts() bounded by the caller's Deadline and the
       EMBEDDINGS_TIMEOUT cap
    3. Validate the response shape (count, non-empty, numeric, dimension)
    4. Return vectors in input order

ERROR TRANSLATION:
    - caller deadline spent            -> CanceledError
    - per-call cap hit (deadline left) -> ProviderError (upstream unresponsive)
    - any provider exception           -> ProviderError
    - empty / malformed response       -> ProviderError
    - wrong dimension                  -> DimensionMismatchError
    - RAGPipelineException from below  -> re-raised unchanged

KEY FACTS:
    - No retries, no caching, no normalization here
    - asyncio.CancelledError (task cancellation) is never translated
"""

import asyncio
import logging
import math
from typing import List, Optional

from tenant_rag.config.settings import Settings
from tenant_rag.providers.embeddings.base import IEmbeddingsProvider
from tenant_rag.utils.deadline import Deadline, DeadlineExceeded

from .exceptions import (
    CanceledError,
    DimensionMismatchError,
    ProviderError,
    RAGPipelineException,
)

logger = logging.getLogger(__name__)

COMPONENT = "embeddings"


class EmbeddingsHandler:
    """
    Handles embeddings generation for queries and documents.
    Supports deadline / timeout protection.
    """

    def __init__(self, provider: IEmbeddingsProvider, settings: Settings):
        """
        Args:
            provider: Pre-initialized embeddings provider (created by ServiceContainer)
            settings: Application settings
        """
        self.provider = provider
        self.settings = settings
        self.expected_dimension: Optional[int] = settings.embeddings_dimension or None
        logger.info(
            "EmbeddingsHandler initialized (provider=%s dim=%s)",
            getattr(provider, "name", type(provider).__name__),
            self.expected_dimension,
        )

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    async def embed_texts(
        self, texts: List[str], deadline: Optional[Deadline] = None
    ) -> List[List[float]]:
        """Generate embeddings for multiple texts."""
        deadline = deadline or Deadline.none()
        context = {"text_count": len(texts), "provider": self.provider_name}

        try:
            embeddings = await deadline.run(
                self.provider.embed_texts(texts), cap=self.settings.embeddings_timeout
            )

        except DeadlineExceeded:
            raise CanceledError(
                "deadline expired before embedding", context=context, component=COMPONENT
            )

        except asyncio.TimeoutError:
            if deadline.expired():
                raise CanceledError(
                    "deadline expired during embedding", context=context, component=COMPONENT
                )
            raise ProviderError(
                f"embedding provider timed out after {self.settings.embeddings_timeout}s",
                context=context,
                component=COMPONENT,
                provider=self.provider_name,
            )

        except RAGPipelineException:
            raise

        except Exception as e:
            raise ProviderError(
                f"embedding generation failed: {e}",
                context=context,
                component=COMPONENT,
                provider=self.provider_name,
            ) from e

        self._validate(texts, embeddings)
        logger.debug("Embeddings generated: %d texts -> %d vectors", len(texts), len(embeddings))
        return embeddings

    async def embed_query(self, query: str, deadline: Optional[Deadline] = None) -> List[float]:
        """Generate embedding for single query."""
        embeddings = await self.embed_texts([query], deadline=deadline)
        return embeddings[0]

    def _validate(self, texts: List[str], embeddings) -> None:
        context = {"text_count": len(texts), "provider": self.provider_name}

        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise ProviderError(
                f"embedding provider returned {len(embeddings) if isinstance(embeddings, list) else type(embeddings).__name__} "
                f"vectors for {len(texts)} texts",
                context=context,
                component=COMPONENT,
                provider=self.provider_name,
            )

        for vector in embeddings:
            if not vector:
                raise ProviderError(
                    "embedding provider returned an empty vector",
                    context=context,
                    component=COMPONENT,
                    provider=self.provider_name,
                )
            if not all(isinstance(x, (int, float)) and math.isfinite(x) for x in vector):
                raise ProviderError(
                    "embedding provider returned a non-numeric vector",
                    context=context,
                    component=COMPONENT,
                    provider=self.provider_name,
                )
            if self.expected_dimension and len(vector) != self.expected_dimension:
                raise DimensionMismatchError(
                    f"expected {self.expected_dimension}-d embeddings, got {len(vector)}-d",
                    context={**context, "expected": self.expected_dimension, "got": len(vector)},
                    component=COMPONENT,
                )
