"""
================================================================================
FILE: tenant_rag/core/model_router.py
================================================================================

PURPOSE:
    Sends a user message (plus optional retrieved context) to the completion
    provider that serves the requested model, and returns the completion.

WORKFLOW:
    1. Validate the request (non-empty message)
    2. Pick provider + model with the routing strategy
       - known model hint  -> provider registered for that model
       - no hint           -> DEFAULT_COMPLETION_MODEL
       - unknown hint      -> UnsupportedModelError, no network call
    3. Compose outbound messages:
         [system prompt] + [context block] + [user message]
    4. Call provider.complete() bounded by the Deadline and LLM_TIMEOUT
    5. Translate failures (ProviderError / CanceledError)

CONTEXT BLOCK:
    Context:

    [1] id=<id> score=<score:.4f>
    <text>

    [2] ...

    Matches appear in the order given; a match without stored text only
    contributes its header line.

KEY FACTS:
    - The router never retrieves; context is whatever the caller passes
    - compose() is pure: identical requests give identical messages
    - No retries, no fallback to another provider
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from tenant_rag.config.settings import Settings
from tenant_rag.providers.llm.base import ILLMProvider, Message
from tenant_rag.utils.deadline import Deadline, DeadlineExceeded

from .exceptions import (
    CanceledError,
    ConfigurationError,
    ProviderError,
    RAGPipelineException,
    UnsupportedModelError,
    ValidationError,
)
from .models import ModelRequest, RetrievalMatch, RouteDecision

logger = logging.getLogger(__name__)

COMPONENT = "router"


# ================================================================================
# MODEL CATALOG
# ================================================================================

class ModelCatalog:
    """Model id -> name of the provider that serves it."""

    def __init__(self, entries: Dict[str, str], default_model: str) -> None:
        if default_model not in entries:
            raise ConfigurationError(
                f"default completion model '{default_model}' is not served by any provider",
                context={"known_models": sorted(entries)},
                component=COMPONENT,
            )
        self._entries = dict(entries)
        self.default_model = default_model

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[Tuple[str, str]], default_model: str
    ) -> "ModelCatalog":
        entries: Dict[str, str] = {}
        for model, provider in pairs:
            if model in entries and entries[model] != provider:
                raise ConfigurationError(
                    f"model '{model}' is listed for both '{entries[model]}' and '{provider}'",
                    component=COMPONENT,
                )
            entries[model] = provider
        return cls(entries, default_model)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelCatalog":
        pairs = [
            (model, provider)
            for provider in settings.llm_providers
            for model in settings.models_for_provider(provider)
        ]
        return cls.from_pairs(pairs, settings.default_completion_model)

    def provider_for(self, model: str) -> Optional[str]:
        return self._entries.get(model)

    def __contains__(self, model: str) -> bool:
        return model in self._entries

    @property
    def models(self) -> List[str]:
        return sorted(self._entries)

    @property
    def providers(self) -> List[str]:
        return sorted(set(self._entries.values()))


# ================================================================================
# ROUTING STRATEGY
# ================================================================================

class RoutingStrategy(Protocol):
    def select(self, request: ModelRequest, catalog: ModelCatalog) -> RouteDecision: ...


class HintOrDefaultStrategy:
    """Honor the model hint when it is known, fall back to the default model."""

    def select(self, request: ModelRequest, catalog: ModelCatalog) -> RouteDecision:
        model = request.model if request.model is not None else catalog.default_model
        provider = catalog.provider_for(model)
        if provider is None:
            raise UnsupportedModelError(
                f"no provider serves model '{model}'",
                context={"model": model, "known_models": catalog.models},
                component=COMPONENT,
            )
        return RouteDecision(provider=provider, model=model)


# ================================================================================
# ROUTER
# ================================================================================

class ModelRouter:
    """
    Provider-agnostic completion routing.
    Supports deadline / timeout protection.
    """

    def __init__(
        self,
        providers: Dict[str, ILLMProvider],
        catalog: ModelCatalog,
        settings: Settings,
        strategy: Optional[RoutingStrategy] = None,
    ) -> None:
        missing = [p for p in catalog.providers if p not in providers]
        if missing:
            raise ConfigurationError(
                f"catalog references unregistered providers: {missing}",
                component=COMPONENT,
            )
        self.providers = providers
        self.catalog = catalog
        self.settings = settings
        self.strategy: RoutingStrategy = strategy or HintOrDefaultStrategy()
        self.system_prompt = settings.system_prompt
        logger.info(
            "ModelRouter initialized (providers=%s default=%s)",
            sorted(providers),
            catalog.default_model,
        )

    # --------------------------------------------------------------------
    # Composition
    # --------------------------------------------------------------------

    @staticmethod
    def format_context(matches: Sequence[RetrievalMatch]) -> str:
        blocks = []
        for n, match in enumerate(matches, start=1):
            header = f"[{n}] id={match.id} score={match.score:.4f}"
            text = match.text
            blocks.append(f"{header}\n{text}" if text else header)
        return "Context:\n\n" + "\n\n".join(blocks)

    def compose(self, request: ModelRequest) -> List[Message]:
        """Outbound messages for a request, in provider-neutral form."""
        messages: List[Message] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        if request.context:
            messages.append({"role": "user", "content": self.format_context(request.context)})
        messages.append({"role": "user", "content": request.message})
        return messages

    # --------------------------------------------------------------------
    # Dispatch
    # --------------------------------------------------------------------

    def select(self, request: ModelRequest) -> RouteDecision:
        if not isinstance(request.message, str) or not request.message.strip():
            raise ValidationError("message must be a non-empty string", component=COMPONENT)
        return self.strategy.select(request, self.catalog)

    async def dispatch(
        self, request: ModelRequest, deadline: Optional[Deadline] = None
    ) -> Tuple[RouteDecision, str]:
        """Route a request and return (decision, completion text)."""
        decision = self.select(request)
        provider = self.providers[decision.provider]
        messages = self.compose(request)

        deadline = deadline or Deadline.none()
        context = {"provider": decision.provider, "model": decision.model}

        try:
            text = await deadline.run(
                provider.complete(decision.model, messages), cap=self.settings.llm_timeout
            )

        except DeadlineExceeded:
            raise CanceledError(
                "deadline expired before completion", context=context, component=COMPONENT
            )

        except asyncio.TimeoutError:
            if deadline.expired():
                raise CanceledError(
                    "deadline expired during completion", context=context, component=COMPONENT
                )
            raise ProviderError(
                f"completion timed out after {self.settings.llm_timeout}s",
                context=context,
                component=COMPONENT,
                provider=decision.provider,
            )

        except RAGPipelineException:
            raise

        except Exception as e:
            raise ProviderError(
                f"completion failed: {e}",
                context=context,
                component=COMPONENT,
                provider=decision.provider,
            ) from e

        if not isinstance(text, str):
            raise ProviderError(
                "completion provider returned a non-text response",
                context=context,
                component=COMPONENT,
                provider=decision.provider,
            )
        if not text.strip():
            raise ProviderError(
                "completion provider returned an empty completion",
                context=context,
                component=COMPONENT,
                provider=decision.provider,
            )

        logger.debug(
            "Completion from %s/%s (%d chars)", decision.provider, decision.model, len(text)
        )
        return decision, text

    async def route(self, request: ModelRequest, deadline: Optional[Deadline] = None) -> str:
        """Completion text for a request."""
        _, text = await self.dispatch(request, deadline=deadline)
        return text


__all__ = [
    "ModelCatalog",
    "RoutingStrategy",
    "HintOrDefaultStrategy",
    "ModelRouter",
]
