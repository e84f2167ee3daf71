"""
Service registry - marketplace service name -> location and public policy.
Design: Built once at startup from Settings and passed explicitly (app.state),
never mutated afterwards.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from gateway.config import Settings
from gateway.routing.policy import NONE_PUBLIC, PublicPolicy, is_public, parse_policy

# Public routes per service, in the configuration form accepted by parse_policy
DEFAULT_PUBLIC_POLICIES: dict[str, Any] = {
    "auth": "all",
    "catalog": {"GET": ["/products", "/products/:id", "/categories", "/search"]},
    "payment": "none",
    "shipping": {"GET": ["/calculate-rates"]},
    "notification": "none",
}


@dataclass(frozen=True)
class ServiceEntry:
    name: str
    base_url: str
    policy: PublicPolicy


class ServiceRegistry(Mapping[str, ServiceEntry]):
    """Read-only table of downstream services, in registration order."""

    def __init__(self, entries: list[ServiceEntry] | tuple[ServiceEntry, ...]):
        table: dict[str, ServiceEntry] = {}
        for entry in entries:
            if entry.name in table:
                raise ValueError(f"Duplicate service name: {entry.name}")
            table[entry.name] = entry
        self._entries = MappingProxyType(table)

    def __getitem__(self, name: str) -> ServiceEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        return list(self._entries)

    def policy_for(self, name: str) -> PublicPolicy:
        """Policy of a service; unknown services are never public."""
        entry = self._entries.get(name)
        return entry.policy if entry else NONE_PUBLIC

    def is_public(self, name: str, method: str, path: str) -> bool:
        return is_public(self.policy_for(name), method, path)


def build_registry(settings: Settings) -> ServiceRegistry:
    """Default marketplace services, with URL and policy overrides from settings."""
    urls = {
        "auth": settings.auth_service_url,
        "catalog": settings.catalog_service_url,
        "payment": settings.payment_service_url,
        "shipping": settings.shipping_service_url,
        "notification": settings.notification_service_url,
    }
    overrides = settings.service_policy_overrides
    entries = [
        ServiceEntry(
            name=name,
            base_url=url,
            policy=parse_policy(overrides.get(name, DEFAULT_PUBLIC_POLICIES.get(name))),
        )
        for name, url in urls.items()
    ]
    return ServiceRegistry(entries)
