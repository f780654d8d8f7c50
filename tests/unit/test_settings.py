"""
Unit tests for Settings parsing and validation.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from tests.conftest import build_settings


class TestSettings:

    def test_csv_lists(self):
        settings = build_settings(
            LLM_PROVIDERS=" openai , huggingface ",
            OPENAI_MODELS="gpt-4o, gpt-4o-mini,,",
            HF_LLM_MODELS="gpt2",
        )
        assert settings.llm_providers == ["openai", "huggingface"]
        assert settings.openai_models == ["gpt-4o", "gpt-4o-mini"]
        assert settings.models_for_provider("huggingface") == ["gpt2"]
        assert settings.models_for_provider("nobody") == []

    def test_unknown_llm_provider(self):
        with pytest.raises(PydanticValidationError):
            build_settings(LLM_PROVIDERS="openai,anthropic")

    def test_no_llm_provider(self):
        with pytest.raises(PydanticValidationError):
            build_settings(LLM_PROVIDERS=" , ")

    def test_default_top_k_above_max(self):
        with pytest.raises(PydanticValidationError):
            build_settings(VECTOR_DB_TOP_K=20, VECTOR_DB_MAX_TOP_K=10)

    def test_overlap_must_be_smaller_than_chunk(self):
        with pytest.raises(PydanticValidationError):
            build_settings(CHUNK_SIZE=10, CHUNK_OVERLAP=10)

    def test_overlap_ignored_without_chunking(self):
        assert build_settings(CHUNK_SIZE=0, CHUNK_OVERLAP=10).document_chunk_overlap == 10

    def test_unknown_namespace_strategy(self):
        with pytest.raises(PydanticValidationError):
            build_settings(NAMESPACE_STRATEGY="random")

    def test_blank_api_key_is_unset(self):
        settings = build_settings(OPENAI_API_KEY="   ")
        assert settings.openai_api_key is None

    def test_to_dict_redacts_secrets(self):
        settings = build_settings(
            OPENAI_API_KEY="sk-test",
            REDIS_URL="redis://user:pw@cache:6379/0",
        )
        data = settings.to_dict()
        assert data["openai_api_key"] == "***REDACTED***"
        assert data["redis_url"] == "***REDACTED***"
        assert data["gemini_api_key"] is None

    def test_field_names_accepted(self):
        settings = build_settings(vector_db_top_k=7)
        assert settings.vector_db_top_k == 7
