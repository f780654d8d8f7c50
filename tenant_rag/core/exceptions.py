# MERGED: 3 sections with separation comments
#│   │   ├── SECTION 1: Base exceptions
#│   │   ├── SECTION 2: Provider / runtime exceptions
#│   │   └── SECTION 3: Validation & configuration exceptions
"""
================================================================================
FILE: tenant_rag/core/exceptions.py
================================================================================

PURPOSE:
    Custom exception hierarchy for the retrieval-and-routing layer. Every error
    raised by the indexer, retriever, router or their provider handlers is one
    of these types, so callers (and the HTTP layer) can react by type.

WORKFLOW:
    1. Define base exception class (RAGPipelineException)
    2. Define exception categories:
       - RecoverableException: transient, the CALLER may retry
       - FatalException: retrying the same call cannot succeed
    3. Define the concrete error kinds used by the core:
       - ValidationError / InvalidTenantError (bad caller input)
       - UnsupportedModelError (router given an unknown model hint)
       - ProviderError (any upstream embedding / vector / completion failure)
       - CanceledError (caller deadline expired)
       - ConfigurationError / DimensionMismatchError (broken deployment)

IMPORTS:
    - None (only Python builtins)

KEY FACTS:
    - NO imports from tenant_rag modules (prevents circular dependencies)
    - Each exception carries error_code, optional context dict, and the name
      of the component that raised it
    - Nothing in the core retries; "recoverable" only tells the caller a retry
      may succeed
    - Errors are never downgraded to empty results
"""

# ================================================================================
# IMPORTS
# ================================================================================

from typing import Optional, Dict, Any

# ================================================================================
# SECTION 1: BASE EXCEPTIONS
# ================================================================================

class RAGPipelineException(Exception):
    """
    Root exception for all retrieval / routing errors.

    Attributes:
        message (str): Human-readable error message
        error_code (str): Machine-readable error code for categorization
        context (dict): Additional context (optional)
        component (str): Component that raised the error (indexer, retriever, ...)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        context: Optional[Dict[str, Any]] = None,
        component: Optional[str] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.component = component
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.component:
            return f"[{self.error_code}] {self.component}: {self.message}"
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dict for JSON response"""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "component": self.component,
            "context": self.context,
        }


class RecoverableException(RAGPipelineException):
    """
    Transient failure: the same call may succeed later.

    The core never retries on its own; retry/backoff policy belongs to the
    caller.
    """
    pass


class FatalException(RAGPipelineException):
    """
    Permanent failure for this input or this deployment.

    Retrying the same call will fail the same way.
    """
    pass

# ================================================================================
# SECTION 2: PROVIDER / RUNTIME EXCEPTIONS
# ================================================================================

class ProviderError(RecoverableException):
    """Upstream service failure: auth, network, quota, malformed response."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(
            message, error_code="PROVIDER_ERROR", context=context, component=component
        )
        self.provider = provider


class CanceledError(RecoverableException):
    """Operation aborted because the caller's deadline expired."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
    ):
        super().__init__(
            message, error_code="CANCELED", context=context, component=component
        )

# ================================================================================
# SECTION 3: VALIDATION & CONFIGURATION EXCEPTIONS
# ================================================================================

class ValidationError(FatalException):
    """Caller input is invalid (won't fix on retry)"""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
        error_code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            message, error_code=error_code, context=context, component=component
        )


class InvalidTenantError(ValidationError):
    """Tenant identifier is empty or contains characters the index forbids"""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
    ):
        super().__init__(
            message, context=context, component=component, error_code="INVALID_TENANT"
        )


class UnsupportedModelError(FatalException):
    """Model hint names a model with no registered provider"""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
    ):
        super().__init__(
            message, error_code="UNSUPPORTED_MODEL", context=context, component=component
        )


class ConfigurationError(FatalException):
    """Invalid configuration (fatal)"""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
        error_code: str = "CONFIG_ERROR",
    ):
        super().__init__(
            message, error_code=error_code, context=context, component=component
        )


class DimensionMismatchError(ConfigurationError):
    """Vector dimension differs from the one the namespace / index expects"""

    def __init__(
        self,
        message: str,
        context: Optional[Dict] = None,
        component: Optional[str] = None,
    ):
        super().__init__(
            message,
            context=context,
            component=component,
            error_code="DIMENSION_MISMATCH",
        )


class ServiceInitializationError(FatalException):
    """Raised when a service/provider fails to initialize (fatal)."""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(
            message, error_code="SERVICE_INIT_ERROR", context=context, component="container"
        )


__all__ = [
    "RAGPipelineException",
    "RecoverableException",
    "FatalException",
    "ProviderError",
    "CanceledError",
    "ValidationError",
    "InvalidTenantError",
    "UnsupportedModelError",
    "ConfigurationError",
    "DimensionMismatchError",
    "ServiceInitializationError",
]
