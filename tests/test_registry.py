"""
Service registry tests - default table, overrides, default deny for unknown services.
"""

import pytest

from gateway.config import Settings
from gateway.routing.policy import ALL_PUBLIC, NONE_PUBLIC, MethodPolicy
from gateway.routing.registry import ServiceEntry, ServiceRegistry, build_registry


@pytest.fixture
def registry(settings: Settings) -> ServiceRegistry:
    return build_registry(settings)


def test_default_services_in_order(registry):
    assert registry.names() == ["auth", "catalog", "payment", "shipping", "notification"]


def test_default_urls(registry):
    assert registry["catalog"].base_url == "http://localhost:3002"
    assert registry["notification"].base_url == "http://localhost:3005"


def test_default_policies(registry):
    assert registry["auth"].policy is ALL_PUBLIC
    assert registry["payment"].policy is NONE_PUBLIC
    assert registry["notification"].policy is NONE_PUBLIC
    assert isinstance(registry["catalog"].policy, MethodPolicy)


def test_catalog_and_shipping_public_routes(registry):
    assert registry.is_public("catalog", "GET", "/products/123") is True
    assert registry.is_public("catalog", "POST", "/products") is False
    assert registry.is_public("shipping", "GET", "/calculate-rates") is True
    assert registry.is_public("shipping", "POST", "/shipments") is False


def test_unknown_service_requires_auth(registry):
    assert registry.get("inventory") is None
    assert registry.policy_for("inventory") is NONE_PUBLIC
    assert registry.is_public("inventory", "GET", "/products") is False


def test_urls_come_from_settings():
    settings = Settings(_env_file=None, payment_service_url="http://payment:8080/")
    registry = build_registry(settings)
    assert registry["payment"].base_url == "http://payment:8080"


def test_policy_overrides():
    settings = Settings(
        _env_file=None,
        service_policy_overrides={"payment": {"GET": ["/methods"]}, "auth": "none"},
    )
    registry = build_registry(settings)
    assert registry.is_public("payment", "GET", "/methods") is True
    assert registry.is_public("auth", "POST", "/login") is False


def test_malformed_override_fails_closed():
    settings = Settings(_env_file=None, service_policy_overrides={"catalog": {"GET": "/products"}})
    registry = build_registry(settings)
    assert registry["catalog"].policy is NONE_PUBLIC


def test_duplicate_service_names_rejected():
    entry = ServiceEntry(name="catalog", base_url="http://a", policy=NONE_PUBLIC)
    with pytest.raises(ValueError):
        ServiceRegistry([entry, entry])


def test_registry_is_immutable(registry):
    with pytest.raises(TypeError):
        registry["catalog"] = ServiceEntry(name="catalog", base_url="http://x", policy=ALL_PUBLIC)
