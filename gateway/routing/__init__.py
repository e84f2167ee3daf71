# Route authorization: public-route policies and the service registry

from gateway.routing.policy import (
    ALL_PUBLIC,
    NONE_PUBLIC,
    MethodPolicy,
    PublicPolicy,
    RouteTemplate,
    is_public,
    normalize_path,
    parse_policy,
)
from gateway.routing.registry import ServiceEntry, ServiceRegistry, build_registry

__all__ = [
    "ALL_PUBLIC",
    "NONE_PUBLIC",
    "MethodPolicy",
    "PublicPolicy",
    "RouteTemplate",
    "ServiceEntry",
    "ServiceRegistry",
    "build_registry",
    "is_public",
    "normalize_path",
    "parse_policy",
]
