"""
Unit tests for the completion providers, driven through fake SDK clients.
"""

from types import SimpleNamespace

import pytest

from tenant_rag.core.exceptions import ProviderError
from tenant_rag.core.model_router import ModelCatalog, ModelRouter
from tenant_rag.core.models import ModelRequest
from tenant_rag.providers.llm.gemini import GeminiLLMConfig, GeminiProvider
from tenant_rag.providers.llm.huggingface import HFLLMConfig, HuggingFaceProvider
from tenant_rag.providers.llm.openai import OpenAILLMConfig, OpenAIProvider
from tests.conftest import FakeLLM

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Context:\n[1] alpha"},
    {"role": "user", "content": "What is alpha?"},
]


class _Recorder:
    def __init__(self, response):
        self.response = response
        self.calls = []

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def _openai_client(response):
    create = _Recorder(response)
    return SimpleNamespace(responses=SimpleNamespace(create=create)), create


def _gemini_client(response):
    generate = _Recorder(response)
    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate)))
    return client, generate


def _message_item(*texts):
    return SimpleNamespace(
        type="message",
        content=[SimpleNamespace(type="output_text", text=t) for t in texts],
    )


class TestOpenAIProvider:

    @pytest.mark.asyncio
    async def test_messages_passed_through(self):
        client, create = _openai_client(SimpleNamespace(output_text="an answer"))
        provider = OpenAIProvider(OpenAILLMConfig(max_output_tokens=64), client=client)
        await provider.initialize()

        assert await provider.complete("gpt-4o", MESSAGES) == "an answer"
        call = create.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["input"] == MESSAGES
        assert call["max_output_tokens"] == 64

    @pytest.mark.asyncio
    async def test_output_items_walked_without_output_text(self):
        response = SimpleNamespace(
            output_text="",
            output=[
                SimpleNamespace(type="reasoning", content=None),
                _message_item("first", "second"),
                SimpleNamespace(type="message", content=[SimpleNamespace(type="refusal")]),
            ],
        )
        client, _ = _openai_client(response)
        provider = OpenAIProvider(OpenAILLMConfig(), client=client)

        assert await provider.complete("gpt-4o", MESSAGES) == "first\nsecond"

    @pytest.mark.asyncio
    async def test_no_output_text_raises(self):
        response = SimpleNamespace(output_text="", output=[], status="incomplete")
        client, _ = _openai_client(response)
        provider = OpenAIProvider(OpenAILLMConfig(), client=client)

        with pytest.raises(RuntimeError, match="status=incomplete"):
            await provider.complete("gpt-4o", MESSAGES)

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        with pytest.raises(ValueError):
            await OpenAIProvider(OpenAILLMConfig(api_key=None)).initialize()


class TestGeminiProvider:

    def test_to_contents(self):
        system, contents = GeminiProvider._to_contents(
            MESSAGES + [{"role": "assistant", "content": "earlier"}]
        )

        assert system == "Be brief."
        assert [c.role for c in contents] == ["user", "user", "model"]
        assert contents[1].parts[0].text == "What is alpha?"

    def test_to_contents_without_system(self):
        system, contents = GeminiProvider._to_contents([{"role": "user", "content": "hi"}])
        assert system is None
        assert len(contents) == 1

    @pytest.mark.asyncio
    async def test_complete_sends_system_instruction(self):
        client, generate = _gemini_client(SimpleNamespace(text="an answer"))
        provider = GeminiProvider(GeminiLLMConfig(temperature=0.1), client=client)

        assert await provider.complete("gemini-2.0-flash", MESSAGES) == "an answer"
        call = generate.calls[0]
        assert call["model"] == "gemini-2.0-flash"
        assert call["config"].system_instruction == "Be brief."
        assert call["config"].temperature == 0.1
        assert len(call["contents"]) == 2

    @pytest.mark.asyncio
    async def test_blocked_response_raises(self):
        response = SimpleNamespace(
            text=None,
            prompt_feedback=SimpleNamespace(block_reason="SAFETY"),
            candidates=[],
        )
        client, _ = _gemini_client(response)
        provider = GeminiProvider(GeminiLLMConfig(), client=client)

        with pytest.raises(RuntimeError, match="SAFETY"):
            await provider.complete("gemini-2.0-flash", MESSAGES)

    @pytest.mark.asyncio
    async def test_router_reports_empty_gemini_text_as_provider_error(self, settings):
        client, _ = _gemini_client(
            SimpleNamespace(text=None, prompt_feedback=None, candidates=[])
        )
        llms = {
            "openai": FakeLLM("openai"),
            "gemini": GeminiProvider(GeminiLLMConfig(), client=client),
        }
        router = ModelRouter(llms, ModelCatalog.from_settings(settings), settings)

        with pytest.raises(ProviderError) as info:
            await router.route(ModelRequest(message="hi", model="gemini-2.0-flash"))
        assert info.value.provider == "gemini"


class _StrictTokenizer:
    """Chat template that rejects non-alternating user/assistant turns."""

    chat_template = "strict"

    def __init__(self):
        self.rendered = None

    def apply_chat_template(self, messages, tokenize=False, add_generation_prompt=False):
        roles = [m["role"] for m in messages if m["role"] != "system"]
        for prev, cur in zip(roles, roles[1:]):
            if prev == cur:
                raise ValueError("Conversation roles must alternate user/assistant")
        self.rendered = messages
        return "|".join(f"{m['role']}={m['content']}" for m in messages) + "|assistant="


class TestHuggingFaceRender:

    def test_merge_turns(self):
        merged = HuggingFaceProvider._merge_turns(MESSAGES)
        assert merged == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Context:\n[1] alpha\n\nWhat is alpha?"},
        ]
        assert MESSAGES[1]["content"] == "Context:\n[1] alpha"

    def test_strict_chat_template_accepts_composed_messages(self):
        tokenizer = _StrictTokenizer()

        prompt = HuggingFaceProvider._render(tokenizer, MESSAGES)

        assert [m["role"] for m in tokenizer.rendered] == ["system", "user"]
        assert prompt.endswith("|assistant=")

    def test_plain_prompt_without_chat_template(self):
        tokenizer = SimpleNamespace(chat_template=None)

        prompt = HuggingFaceProvider._render(tokenizer, MESSAGES[:1] + MESSAGES[2:])

        assert prompt == "SYSTEM: Be brief.\n\nUSER: What is alpha?\n\nASSISTANT:"

    @pytest.mark.asyncio
    async def test_unloaded_model(self):
        provider = HuggingFaceProvider(HFLLMConfig(models=("tiny",)))
        with pytest.raises(RuntimeError):
            await provider.complete("tiny", MESSAGES)
