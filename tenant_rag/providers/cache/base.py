"""
FILE: tenant_rag/providers/cache/base.py

Cache provider interface (contract).

Used only for the caller-side embedding cache; values must be
JSON-serializable. A cache never raises into the caller: a backend outage
reads as a miss.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ICacheProvider(ABC):
    """Abstract base class for all cache providers."""

    name: str = "cache"

    @abstractmethod
    async def initialize(self) -> None:
        """Connect to the backend (failure degrades to a pass-through cache)."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value; ttl in seconds (None = provider default)."""
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        """Release connections."""
        raise NotImplementedError
