"""
FILE: tenant_rag/providers/llm/huggingface.py

HuggingFace completion provider (local causal LM) using transformers.

The container builds it with:
    build_provider(settings)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .base import ILLMProvider, Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HFLLMConfig:
    models: Tuple[str, ...]
    device: str = "auto"  # "cpu" | "cuda" | "auto"
    max_new_tokens: int = 512
    temperature: float = 0.7
    token: Optional[str] = None


class HuggingFaceProvider(ILLMProvider):
    """
    Local LLM using transformers AutoModelForCausalLM.

    Notes:
    - every configured model is loaded at initialize(); complete() never
      downloads weights
    - generation is blocking; run it in a thread to keep the event loop free
    - the tokenizer's chat template is used when the model ships one
    """

    name = "huggingface"

    def __init__(self, config: HFLLMConfig):
        self.config = config
        self._loaded: Dict[str, tuple] = {}
        logger.info(
            "HuggingFaceProvider created (models=%s device=%s)",
            list(self.config.models),
            self.config.device,
        )

    async def initialize(self) -> None:
        try:
            from transformers import AutoModelForCausalLM, AutoTokenizer

            def _load(name: str):
                tok = AutoTokenizer.from_pretrained(name, token=self.config.token)
                mdl = AutoModelForCausalLM.from_pretrained(
                    name, device_map=self.config.device, token=self.config.token
                )
                return tok, mdl

            for name in self.config.models:
                if name not in self._loaded:
                    self._loaded[name] = await asyncio.to_thread(_load, name)
                    logger.info("✓ HuggingFace LLM initialized (model=%s)", name)
        except Exception as e:
            logger.error("HF LLM init failed: %s", str(e), exc_info=True)
            raise

    @staticmethod
    def _merge_turns(messages: List[Message]) -> List[Message]:
        """Join consecutive same-role turns; strict templates require alternation."""
        merged: List[Message] = []
        for m in messages:
            if merged and merged[-1]["role"] == m["role"]:
                content = f"{merged[-1]['content']}\n\n{m['content']}"
                merged[-1] = {"role": m["role"], "content": content}
            else:
                merged.append({"role": m["role"], "content": m["content"]})
        return merged

    @classmethod
    def _render(cls, tokenizer, messages: List[Message]) -> str:
        if getattr(tokenizer, "chat_template", None):
            return tokenizer.apply_chat_template(
                cls._merge_turns(messages), tokenize=False, add_generation_prompt=True
            )
        lines = [f"{m['role'].upper()}: {m['content']}" for m in messages]
        lines.append("ASSISTANT:")
        return "\n\n".join(lines)

    async def complete(self, model: str, messages: List[Message]) -> str:
        if model not in self._loaded:
            raise RuntimeError(f"HuggingFace model not loaded: {model}")
        tokenizer, mdl = self._loaded[model]
        prompt = self._render(tokenizer, messages)
        temperature = float(self.config.temperature)

        def _call() -> str:
            inputs = tokenizer(prompt, return_tensors="pt")
            inputs = {k: v.to(mdl.device) for k, v in inputs.items()}

            output_ids = mdl.generate(
                **inputs,
                max_new_tokens=int(self.config.max_new_tokens),
                temperature=temperature if temperature > 0 else None,
                do_sample=temperature > 0,
                pad_token_id=tokenizer.eos_token_id,
            )

            # only decode what was generated after the prompt
            generated = output_ids[0][inputs["input_ids"].shape[-1]:]
            return tokenizer.decode(generated, skip_special_tokens=True).strip()

        return await asyncio.to_thread(_call)

    async def shutdown(self) -> None:
        self._loaded.clear()
        logger.info("HuggingFaceProvider shutdown complete")


def build_provider(settings) -> HuggingFaceProvider:
    return HuggingFaceProvider(
        HFLLMConfig(
            models=tuple(settings.hf_llm_models),
            device=settings.hf_llm_device,
            max_new_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            token=settings.hf_token,
        )
    )


__all__ = ["HFLLMConfig", "HuggingFaceProvider", "build_provider"]
