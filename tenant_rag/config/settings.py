"""
================================================================================
FILE: tenant_rag/config/settings.py
================================================================================

PURPOSE:
    Application settings loaded from environment variables.
    Uses Pydantic BaseSettings for automatic validation and type hints.
    Single source of truth for the retrieval-and-routing configuration.

WORKFLOW:
    1. At startup, load from environment variables (.env file or system env)
    2. Validate all settings (type checking, range validation)
    3. Fail fast if settings are invalid
    4. Construct ONCE and pass by reference (ServiceContainer, handlers)

CONFIGURATION CATEGORIES:
    1. Tenant namespaces
       - namespace_strategy: identity | prefixed | hashed
       - namespace_prefix: prefix used by prefixed/hashed strategies

    2. Provider selection (Layer 1 of the container)
       - embeddings_provider: gemini | openai | huggingface
       - vector_db_provider: qdrant | pinecone | memory
       - llm_providers: completion providers registered with the router
       - cache_provider: redis | none (embedding cache layered outside the embedder)

    3. Models
       - embeddings_model_name / embeddings_dimension
       - default_completion_model
       - openai_models / gemini_models / hf_llm_models (router catalog)

    4. API keys & credentials (injected, never hard-coded)

    5. Timeouts & limits
       - embeddings_timeout, vector_db_timeout, llm_timeout
       - vector_db_top_k (default), vector_db_max_top_k (hard bound)

    6. Indexing
       - document_chunk_size (0 = one vector per document)
       - document_chunk_overlap
       - store_text (keep document text as vector metadata)

    7. Logging / server

KEY FACTS:
    - Pydantic automatically validates types and ranges
    - Environment variables override defaults
    - Supports .env file (python-dotenv)
    - Override in tests: Settings(EMBEDDINGS_DIMENSION=4, ...)
"""

from __future__ import annotations

import os

from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Robust .env path resolution
_CWD_ENV = Path(os.getcwd()) / ".env"
_REPO_ROOT_ENV = Path(__file__).resolve().parents[2] / ".env"
_ENV_PATH = _CWD_ENV if _CWD_ENV.exists() else _REPO_ROOT_ENV

# Load .env into os.environ so provider SDKs reading their own env vars see it
load_dotenv(dotenv_path=_ENV_PATH, override=False)


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables + .env.

    All fields have aliases to match .env variable names; populate_by_name
    lets tests pass python field names instead.
    """

    # ========================================================================
    # Pydantic v2 config
    # ========================================================================

    model_config = SettingsConfigDict(
        env_file=str(_ENV_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ========================================================================
    # TENANT NAMESPACES
    # ========================================================================

    namespace_strategy: Literal["identity", "prefixed", "hashed"] = Field(
        default="identity",
        alias="NAMESPACE_STRATEGY",
        description="Tenant -> namespace mapping: identity | prefixed | hashed",
    )

    namespace_prefix: str = Field(
        default="",
        alias="NAMESPACE_PREFIX",
        description="Prefix prepended by the prefixed / hashed strategies",
    )

    # ========================================================================
    # TOOL SWAP CONFIGURATION
    # ========================================================================

    embeddings_provider: Literal["gemini", "openai", "huggingface"] = Field(
        default="openai",
        alias="EMBEDDINGS_PROVIDER",
        description="Embeddings provider: gemini | openai | huggingface",
    )

    vector_db_provider: Literal["qdrant", "pinecone", "memory"] = Field(
        default="qdrant",
        alias="VECTORDB_PROVIDER",
        description="Vector index: qdrant | pinecone | memory",
    )

    llm_providers: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["openai"],
        alias="LLM_PROVIDERS",
        description="Completion providers registered with the router (comma separated)",
    )

    cache_provider: Literal["redis", "none"] = Field(
        default="none",
        alias="CACHE_PROVIDER",
        description="Embedding cache layered outside the embedder: redis | none",
    )

    # ========================================================================
    # MODELS
    # ========================================================================

    embeddings_model_name: str = Field(
        default="text-embedding-3-small",
        alias="EMBEDDINGS_MODEL",
        description="Default embedding model identifier",
    )

    embeddings_dimension: int = Field(
        default=1536,
        ge=0,
        le=20000,
        alias="EMBEDDINGS_DIMENSION",
        description="Expected embedding dimension (0 disables the check)",
    )

    embeddings_device: str = Field(
        default="cpu",
        alias="EMBEDDINGS_DEVICE",
        description="Device for local embeddings (cpu, cuda, mps)",
    )

    embeddings_batch_size: int = Field(
        default=32,
        ge=1,
        le=1000,
        alias="EMBEDDINGS_BATCH_SIZE",
        description="Batch size for local embeddings",
    )

    embeddings_cache_dir: Optional[str] = Field(
        default=None,
        alias="EMBEDDINGS_CACHE_DIR",
        description="Model cache directory for local embeddings",
    )

    default_completion_model: str = Field(
        default="gpt-4o",
        alias="DEFAULT_COMPLETION_MODEL",
        description="Model used when a request carries no model hint",
    )

    openai_models: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-4.1-mini"],
        alias="OPENAI_MODELS",
        description="Models served by the openai completion provider",
    )

    gemini_models: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["gemini-2.0-flash", "gemini-2.5-flash", "gemini-2.5-pro"],
        alias="GEMINI_MODELS",
        description="Models served by the gemini completion provider",
    )

    hf_llm_models: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["gpt2"],
        alias="HF_LLM_MODELS",
        description="Models served by the local huggingface completion provider",
    )

    hf_llm_device: str = Field(
        default="auto",
        alias="HF_LLM_DEVICE",
        description="device_map for local completion models (auto, cpu, cuda)",
    )

    system_prompt: str = Field(
        default=(
            "You are a helpful assistant. Use the provided context to answer the "
            "question. If the answer is not in the context, say you don't know."
        ),
        alias="SYSTEM_PROMPT",
        description="System prompt placed ahead of context and message",
    )

    # ========================================================================
    # API KEYS & CREDENTIALS (PROVIDER-SPECIFIC)
    # ========================================================================

    openai_api_key: Optional[str] = Field(
        default=None,
        alias="OPENAI_API_KEY",
        description="OpenAI API key",
    )

    gemini_api_key: Optional[str] = Field(
        default=None,
        alias="GEMINI_API_KEY",
        description="Gemini API key",
    )

    hf_token: Optional[str] = Field(
        default=None,
        alias="HF_TOKEN",
        description="HuggingFace token for gated models",
    )

    # ========================================================================
    # TIMEOUTS
    # ========================================================================

    llm_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        alias="LLM_TIMEOUT",
        description="Completion call timeout (seconds)",
    )

    embeddings_timeout: float = Field(
        default=10.0,
        ge=0.1,
        le=60.0,
        alias="EMBEDDINGS_TIMEOUT",
        description="Embeddings call timeout (seconds)",
    )

    vector_db_timeout: float = Field(
        default=5.0,
        ge=0.1,
        le=60.0,
        alias="VECTOR_DB_TIMEOUT",
        description="Vector index call timeout (seconds)",
    )

    redis_timeout: float = Field(
        default=2.0,
        ge=0.1,
        le=10.0,
        alias="REDIS_TIMEOUT",
        description="Redis operation timeout (seconds)",
    )

    # ========================================================================
    # LLM GENERATION
    # ========================================================================

    llm_max_tokens: int = Field(
        default=1024,
        ge=1,
        le=32768,
        alias="LLM_MAX_TOKENS",
        description="Max output tokens per completion",
    )

    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        alias="LLM_TEMPERATURE",
        description="Completion temperature",
    )

    # ========================================================================
    # VECTOR DB
    # ========================================================================

    qdrant_url: str = Field(
        default="http://localhost:6333",
        alias="QDRANT_URL",
        description="Qdrant URL",
    )

    qdrant_api_key: Optional[str] = Field(
        default=None,
        alias="QDRANT_API_KEY",
        description="Qdrant API key (optional)",
    )

    qdrant_collection_name: str = Field(
        default="documents",
        alias="QDRANT_COLLECTION_NAME",
        description="Shared collection holding every tenant namespace",
    )

    pinecone_api_key: Optional[str] = Field(
        default=None,
        alias="PINECONE_API_KEY",
        description="Pinecone API key",
    )

    pinecone_index_name: str = Field(
        default="documents",
        alias="PINECONE_INDEX_NAME",
        description="Pinecone index holding every tenant namespace",
    )

    pinecone_index_host: Optional[str] = Field(
        default=None,
        alias="PINECONE_INDEX_HOST",
        description="Index host (optional; looked up from the index name otherwise)",
    )

    vector_db_distance: Literal["cosine", "dot", "euclid"] = Field(
        default="cosine",
        alias="VECTOR_DB_DISTANCE",
        description="Distance metric of the index",
    )

    vector_db_top_k: int = Field(
        default=5,
        ge=1,
        alias="VECTOR_DB_TOP_K",
        description="Default top-K when the caller passes none",
    )

    vector_db_max_top_k: int = Field(
        default=100,
        ge=1,
        le=10000,
        alias="VECTOR_DB_MAX_TOP_K",
        description="Largest top-K the index accepts; larger requests are rejected",
    )

    # ========================================================================
    # INDEXING
    # ========================================================================

    document_chunk_size: int = Field(
        default=0,
        ge=0,
        le=100000,
        alias="CHUNK_SIZE",
        description="Chunk size in characters (0 = one vector per document)",
    )

    document_chunk_overlap: int = Field(
        default=0,
        ge=0,
        le=10000,
        alias="CHUNK_OVERLAP",
        description="Overlap between consecutive chunks (characters)",
    )

    store_text: bool = Field(
        default=True,
        alias="STORE_TEXT",
        description="Store document text in vector metadata",
    )

    # ========================================================================
    # REDIS (embedding cache)
    # ========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        alias="REDIS_URL",
        description="Redis connection URL",
    )

    cache_ttl_default: int = Field(
        default=3600,
        ge=60,
        le=604800,
        alias="REDIS_CACHE_TTL",
        description="Embedding cache TTL (seconds)",
    )

    # ========================================================================
    # SERVER / LOGGING
    # ========================================================================

    server_host: str = Field(
        default="127.0.0.1",
        alias="BACKEND_HOST",
        description="Server host",
    )

    server_port: int = Field(
        default=8001,
        ge=1024,
        le=65535,
        alias="BACKEND_PORT",
        description="Server port",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    log_format: Literal["json", "text"] = Field(
        default="text",
        alias="LOG_FORMAT",
        description="Logging format: json or text",
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator(
        "llm_providers", "openai_models", "gemini_models", "hf_llm_models", mode="before"
    )
    @classmethod
    def _split_lists(cls, v: Any) -> Any:
        return _split_csv(v)

    @field_validator("llm_providers")
    @classmethod
    def _validate_llm_providers(cls, v: List[str]) -> List[str]:
        allowed = {"openai", "gemini", "huggingface"}
        unknown = [p for p in v if p not in allowed]
        if unknown:
            raise ValueError(f"Unknown LLM providers: {unknown} (allowed: {sorted(allowed)})")
        if not v:
            raise ValueError("At least one LLM provider must be configured")
        return v

    @field_validator("embeddings_model_name", "default_completion_model")
    @classmethod
    def _validate_model_names(cls, v: str) -> str:
        """Validate model names are non-empty strings."""
        if not v or not v.strip():
            raise ValueError("Model name must be non-empty string")
        return v.strip()

    @field_validator(
        "openai_api_key", "gemini_api_key", "hf_token", "qdrant_api_key", "pinecone_api_key"
    )
    @classmethod
    def _validate_api_keys(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank keys as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _validate_limits(self) -> "Settings":
        if self.vector_db_top_k > self.vector_db_max_top_k:
            raise ValueError(
                f"VECTOR_DB_TOP_K ({self.vector_db_top_k}) exceeds "
                f"VECTOR_DB_MAX_TOP_K ({self.vector_db_max_top_k})"
            )
        if self.document_chunk_size and self.document_chunk_overlap >= self.document_chunk_size:
            raise ValueError("CHUNK_OVERLAP must be smaller than CHUNK_SIZE")
        return self

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def models_for_provider(self, provider: str) -> List[str]:
        """Router catalog entries for a completion provider."""
        return {
            "openai": self.openai_models,
            "gemini": self.gemini_models,
            "huggingface": self.hf_llm_models,
        }.get(provider, [])

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert settings to dictionary with secrets redacted.

        Returns:
            Settings dictionary with API keys masked
        """
        d = self.model_dump()

        for k in (
            "openai_api_key",
            "gemini_api_key",
            "hf_token",
            "qdrant_api_key",
            "pinecone_api_key",
        ):
            if d.get(k):
                d[k] = "***REDACTED***"

        if "@" in d.get("redis_url", ""):
            d["redis_url"] = "***REDACTED***"

        return d
