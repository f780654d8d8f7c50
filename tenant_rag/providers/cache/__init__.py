"""
Cache providers package.

ServiceContainer imports implementations by name when CACHE_PROVIDER is not
"none":
  tenant_rag.providers.cache.<provider_name>  (redis)
"""

from .base import ICacheProvider

__all__ = ["ICacheProvider"]
