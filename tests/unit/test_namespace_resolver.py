"""
Unit tests for the tenant -> namespace mapping.
"""

import pytest

from tenant_rag.core.exceptions import ConfigurationError, InvalidTenantError
from tenant_rag.core.namespace_resolver import (
    MAX_NAMESPACE_LENGTH,
    NAMESPACE_PATTERN,
    NamespaceResolver,
)


class TestIdentityStrategy:
    """Default strategy: namespace is the tenant id itself."""

    def test_returns_tenant_id(self):
        resolver = NamespaceResolver()
        assert resolver.resolve("first-user-1") == "first-user-1"

    def test_deterministic(self):
        resolver = NamespaceResolver()
        assert resolver.resolve("tenant1") == resolver.resolve("tenant1")

    def test_distinct_tenants_distinct_namespaces(self):
        resolver = NamespaceResolver()
        assert resolver.resolve("tenant1") != resolver.resolve("tenant2")

    @pytest.mark.parametrize("tenant_id", ["", "   ", None])
    def test_empty_tenant_rejected(self, tenant_id):
        with pytest.raises(InvalidTenantError) as exc_info:
            NamespaceResolver().resolve(tenant_id)
        assert exc_info.value.error_code == "INVALID_TENANT"
        assert exc_info.value.component == "namespace_resolver"

    @pytest.mark.parametrize("tenant_id", ["a b", "user/1", "-leading", "ünïcode", "x" * 513])
    def test_forbidden_characters_rejected(self, tenant_id):
        with pytest.raises(InvalidTenantError):
            NamespaceResolver().resolve(tenant_id)


class TestPrefixedStrategy:

    def test_prefix_prepended(self):
        resolver = NamespaceResolver(strategy="prefixed", prefix="acme-")
        assert resolver.resolve("tenant1") == "acme-tenant1"

    def test_prefix_lets_leading_symbol_through(self):
        resolver = NamespaceResolver(strategy="prefixed", prefix="t.")
        assert resolver.resolve("_internal") == "t._internal"

    def test_prefix_with_forbidden_characters_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            NamespaceResolver(strategy="prefixed", prefix="a/b")


class TestHashedStrategy:

    def test_accepts_any_non_blank_tenant(self):
        resolver = NamespaceResolver(strategy="hashed", prefix="ns-")
        namespace = resolver.resolve("user@example.com / team ü")
        assert namespace.startswith("ns-")
        assert NAMESPACE_PATTERN.match(namespace)
        assert len(namespace) <= MAX_NAMESPACE_LENGTH

    def test_deterministic_and_injective_for_samples(self):
        resolver = NamespaceResolver(strategy="hashed")
        tenants = [f"tenant-{i}" for i in range(200)]
        namespaces = [resolver.resolve(t) for t in tenants]
        assert len(set(namespaces)) == len(tenants)
        assert namespaces == [resolver.resolve(t) for t in tenants]

    def test_blank_still_rejected(self):
        with pytest.raises(InvalidTenantError):
            NamespaceResolver(strategy="hashed").resolve(" ")


def test_unknown_strategy_is_configuration_error():
    with pytest.raises(ConfigurationError):
        NamespaceResolver(strategy="rot13")


def test_from_settings(settings):
    resolver = NamespaceResolver.from_settings(settings)
    assert resolver.strategy == "identity"
