"""
FILE: tenant_rag/providers/llm/gemini.py

Gemini completion provider using the google-genai SDK.

The container builds it with:
    build_provider(settings)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from google import genai
from google.genai import types as genai_types  # for GenerateContentConfig

from .base import ILLMProvider, Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeminiLLMConfig:
    api_key: Optional[str] = None
    max_output_tokens: int = 1024
    temperature: float = 0.7


class GeminiProvider(ILLMProvider):
    """
    Gemini provider.

    Notes:
    - system turns become the request's system_instruction
    - assistant turns map to Gemini's "model" role
    - uses the SDK's async surface (client.aio), no worker thread needed
    """

    name = "gemini"

    def __init__(self, config: GeminiLLMConfig, client: Optional[genai.Client] = None) -> None:
        self.config = config
        self._client = client
        logger.info("GeminiProvider created")

    async def initialize(self) -> None:
        if self._client is not None:
            return
        try:
            if not self.config.api_key:
                raise ValueError("GEMINI_API_KEY not set")

            self._client = genai.Client(api_key=self.config.api_key)
            logger.info("✓ Gemini completions initialized")

        except Exception as e:
            logger.error("Gemini init failed: %s", str(e), exc_info=True)
            raise

    @staticmethod
    def _to_contents(messages: List[Message]) -> Tuple[Optional[str], List[genai_types.Content]]:
        system_parts = []
        contents = []
        for m in messages:
            role = m.get("role", "user")
            if role == "system":
                system_parts.append(m["content"])
                continue
            contents.append(
                genai_types.Content(
                    role="model" if role == "assistant" else "user",
                    parts=[genai_types.Part(text=m["content"])],
                )
            )
        system = "\n\n".join(system_parts) if system_parts else None
        return system, contents

    async def complete(self, model: str, messages: List[Message]) -> str:
        if self._client is None:
            raise RuntimeError("GeminiProvider not initialized. Call initialize() first.")

        system, contents = self._to_contents(messages)
        resp = await self._client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=genai_types.GenerateContentConfig(
                system_instruction=system,
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
            ),
        )

        text = getattr(resp, "text", None)
        if not text:
            # blocked prompts and safety stops come back without text
            feedback = getattr(resp, "prompt_feedback", None)
            reason = getattr(feedback, "block_reason", None)
            if reason is None and getattr(resp, "candidates", None):
                reason = getattr(resp.candidates[0], "finish_reason", None)
            raise RuntimeError(f"Gemini returned no text (reason={reason})")
        return text

    async def shutdown(self) -> None:
        """google-genai does not require explicit close; just drop the client."""
        self._client = None
        logger.info("GeminiProvider shutdown complete")


def build_provider(settings) -> GeminiProvider:
    return GeminiProvider(
        GeminiLLMConfig(
            api_key=settings.gemini_api_key,
            max_output_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
    )


__all__ = ["GeminiLLMConfig", "GeminiProvider", "build_provider"]
