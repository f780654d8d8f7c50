"""
FILE: tenant_rag/providers/llm/base.py

LLM provider interface (contract).
All completion implementations (OpenAI/Gemini/HF etc.) must implement this.

A provider receives an already-composed message list and the model to run;
it never retrieves and never composes context itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List

# {"role": "system" | "user" | "assistant", "content": str}
Message = Dict[str, str]


class ILLMProvider(ABC):
    """Abstract base class for completion providers."""

    name: str = "llm"

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize provider (setup client, load weights, etc.)."""
        raise NotImplementedError

    @abstractmethod
    async def complete(self, model: str, messages: List[Message]) -> str:
        """Run one completion and return the generated text."""
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        """Cleanup resources."""
        raise NotImplementedError


__all__ = ["ILLMProvider", "Message"]
