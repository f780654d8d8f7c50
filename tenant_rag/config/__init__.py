"""
Configuration layer.

Exports the Settings class so callers can do:
    from tenant_rag.config import Settings
"""

from tenant_rag.config.settings import Settings

__all__ = ["Settings"]
