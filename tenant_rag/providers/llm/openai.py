"""
FILE: tenant_rag/providers/llm/openai.py

OpenAI completion provider using the Responses API (AsyncOpenAI).

The container builds it with:
    build_provider(settings)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .base import ILLMProvider, Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAILLMConfig:
    api_key: Optional[str] = None
    timeout_s: float = 30.0
    max_output_tokens: int = 1024
    temperature: float = 0.7


class OpenAIProvider(ILLMProvider):
    """
    OpenAI provider.

    The Responses API accepts the role/content message list directly, so the
    composed messages are passed through unchanged.
    """

    name = "openai"

    def __init__(self, config: OpenAILLMConfig, client=None) -> None:
        self.config = config
        self._client = client
        logger.info("OpenAIProvider created")

    async def initialize(self) -> None:
        if self._client is not None:
            return
        if not self.config.api_key:
            raise ValueError("OPENAI_API_KEY not set")

        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(api_key=self.config.api_key, timeout=self.config.timeout_s)
        logger.info("✓ OpenAI completions initialized")

    async def complete(self, model: str, messages: List[Message]) -> str:
        if self._client is None:
            raise RuntimeError("OpenAIProvider not initialized. Call initialize() first.")

        resp = await self._client.responses.create(
            model=model,
            input=[{"role": m["role"], "content": m["content"]} for m in messages],
            max_output_tokens=self.config.max_output_tokens,
            temperature=self.config.temperature,
        )

        # SDK convenience property; fall back to walking the output items
        text = getattr(resp, "output_text", "") or ""
        if not text and getattr(resp, "output", None):
            parts = []
            for item in resp.output:
                if getattr(item, "type", None) != "message":
                    continue
                for block in getattr(item, "content", None) or []:
                    if getattr(block, "type", None) == "output_text":
                        parts.append(getattr(block, "text", ""))
            text = "\n".join(parts)
        if not text:
            raise RuntimeError(
                f"OpenAI response carried no output text (status={getattr(resp, 'status', None)})"
            )
        return text

    async def shutdown(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None
        logger.info("OpenAIProvider shutdown complete")


def build_provider(settings) -> OpenAIProvider:
    return OpenAIProvider(
        OpenAILLMConfig(
            api_key=settings.openai_api_key,
            timeout_s=settings.llm_timeout,
            max_output_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
    )


__all__ = ["OpenAILLMConfig", "OpenAIProvider", "build_provider"]
