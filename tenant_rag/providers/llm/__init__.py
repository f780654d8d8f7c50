"""
FILE: tenant_rag/providers/llm/__init__.py

Completion providers package.

ServiceContainer imports implementations by name:
  tenant_rag.providers.llm.<provider_name>  (openai, gemini, huggingface)
and calls their `build_provider(settings)`; each one serves the models
listed for it in settings (OPENAI_MODELS, GEMINI_MODELS, HF_LLM_MODELS).
"""

from .base import ILLMProvider, Message

__all__ = [
    "ILLMProvider",
    "Message",
]
