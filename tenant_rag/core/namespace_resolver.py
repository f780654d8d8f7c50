"""
================================================================================
FILE: tenant_rag/core/namespace_resolver.py
================================================================================

PURPOSE:
    Maps a tenant id to the vector-index namespace holding that tenant's
    vectors. Every read and write goes through resolve(), so two tenants can
    only share vectors if resolve() maps them to the same namespace, which
    the strategies below rule out.

STRATEGIES (NAMESPACE_STRATEGY):
    - identity : namespace == tenant id
    - prefixed : NAMESPACE_PREFIX + tenant id
    - hashed   : NAMESPACE_PREFIX + sha256(tenant id) hex digest
                 (accepts tenant ids the index charset forbids)

KEY FACTS:
    - Pure and deterministic: no I/O, same input -> same output
    - Injective: a fixed prefix keeps identity injective; sha256 is treated
      as collision-free
    - Output always matches NAMESPACE_PATTERN and is at most 512 chars
"""

import hashlib
import logging
import re
from typing import Callable, Dict

from .exceptions import ConfigurationError, InvalidTenantError

logger = logging.getLogger(__name__)

COMPONENT = "namespace_resolver"

MAX_NAMESPACE_LENGTH = 512
NAMESPACE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9._-]*$")


def _identity(prefix: str, tenant_id: str) -> str:
    return tenant_id


def _prefixed(prefix: str, tenant_id: str) -> str:
    return f"{prefix}{tenant_id}"


def _hashed(prefix: str, tenant_id: str) -> str:
    return prefix + hashlib.sha256(tenant_id.encode("utf-8")).hexdigest()


STRATEGIES: Dict[str, Callable[[str, str], str]] = {
    "identity": _identity,
    "prefixed": _prefixed,
    "hashed": _hashed,
}


class NamespaceResolver:
    """Tenant id -> namespace."""

    def __init__(self, strategy: str = "identity", prefix: str = "") -> None:
        if strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown namespace strategy: {strategy}",
                context={"allowed": sorted(STRATEGIES)},
                component=COMPONENT,
            )
        if not _PREFIX_PATTERN.match(prefix):
            raise ConfigurationError(
                "NAMESPACE_PREFIX may only contain letters, digits, '.', '_' and '-'",
                context={"prefix": prefix},
                component=COMPONENT,
            )
        if strategy != "identity" and prefix and not NAMESPACE_PATTERN.match(prefix[0]):
            raise ConfigurationError(
                "NAMESPACE_PREFIX must start with a letter or digit",
                context={"prefix": prefix},
                component=COMPONENT,
            )
        self.strategy = strategy
        self.prefix = prefix
        self._map = STRATEGIES[strategy]
        logger.info("NamespaceResolver initialized (strategy=%s prefix=%r)", strategy, prefix)

    @classmethod
    def from_settings(cls, settings) -> "NamespaceResolver":
        return cls(strategy=settings.namespace_strategy, prefix=settings.namespace_prefix)

    def resolve(self, tenant_id: str) -> str:
        """
        Args:
            tenant_id: opaque tenant identifier supplied by the caller

        Returns:
            namespace string valid for the vector index

        Raises:
            InvalidTenantError: empty id, or an id the strategy cannot map
                                into the index charset
        """
        if not isinstance(tenant_id, str) or not tenant_id.strip():
            raise InvalidTenantError("tenant id must be a non-empty string", component=COMPONENT)

        namespace = self._map(self.prefix, tenant_id)

        if len(namespace) > MAX_NAMESPACE_LENGTH:
            raise InvalidTenantError(
                f"namespace for tenant exceeds {MAX_NAMESPACE_LENGTH} characters",
                context={"length": len(namespace)},
                component=COMPONENT,
            )
        if not NAMESPACE_PATTERN.match(namespace):
            raise InvalidTenantError(
                "tenant id contains characters not allowed in a namespace",
                context={"tenant_id": tenant_id, "strategy": self.strategy},
                component=COMPONENT,
            )
        return namespace


__all__ = ["NamespaceResolver", "NAMESPACE_PATTERN", "MAX_NAMESPACE_LENGTH", "STRATEGIES"]
