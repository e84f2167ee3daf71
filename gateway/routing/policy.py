"""
Public route policy - decides whether a request may skip authentication.
Challenge: Keep public routes cheap; never expose a private endpoint by accident.
Design: Templates compile to anchored regexes once; matching is a pure function.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

logger = logging.getLogger(__name__)

_PARAM_RE = re.compile(r":\w+")
_SEGMENT = "[^/]+"


class Access(str, Enum):
    """Whole-service policies."""

    ALL = "all"
    NONE = "none"


ALL_PUBLIC = Access.ALL
NONE_PUBLIC = Access.NONE


def normalize_path(path: str) -> str:
    """
    Drop the query string, map "" to "/" and remove one trailing slash.

    Applied to templates and request paths alike, so "/search/" and "/search"
    are the same route.
    """
    path = path.split("?", 1)[0]
    if not path:
        return "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


@dataclass(frozen=True)
class RouteTemplate:
    """Route template such as /products/:id with its compiled matcher."""

    template: str
    pattern: re.Pattern

    @classmethod
    def compile(cls, template: str) -> "RouteTemplate":
        template = normalize_path(template)
        literals = _PARAM_RE.split(template)
        regex = _SEGMENT.join(re.escape(part) for part in literals)
        return cls(template=template, pattern=re.compile(f"^{regex}$"))

    def matches(self, path: str) -> bool:
        return self.pattern.fullmatch(path) is not None


@dataclass(frozen=True)
class MethodPolicy:
    """HTTP method -> ordered public route templates."""

    routes: Mapping[str, tuple[RouteTemplate, ...]]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "MethodPolicy":
        routes = {
            method.upper(): tuple(RouteTemplate.compile(t) for t in templates)
            for method, templates in raw.items()
        }
        return cls(routes=MappingProxyType(routes))

    def templates_for(self, method: str) -> tuple[RouteTemplate, ...] | None:
        return self.routes.get(method.upper())


PublicPolicy = Union[Access, MethodPolicy]


def _is_valid_route_map(raw: Mapping[Any, Any]) -> bool:
    for method, templates in raw.items():
        if not isinstance(method, str) or not method:
            return False
        if isinstance(templates, str) or not isinstance(templates, (list, tuple)):
            return False
        if not all(isinstance(t, str) and t.startswith("/") for t in templates):
            return False
    return True


def parse_policy(raw: Any) -> PublicPolicy:
    """
    Build a policy from its configuration form.

    "all"/True -> every route public, "none"/False/None -> none public,
    {"GET": ["/products/:id"]} -> per-method templates.
    Anything else is treated as private.
    """
    if isinstance(raw, (Access, MethodPolicy)):
        return raw
    if raw is True:
        return ALL_PUBLIC
    if raw is None or raw is False:
        return NONE_PUBLIC
    if isinstance(raw, str):
        try:
            return Access(raw.strip().lower())
        except ValueError:
            logger.warning("Unknown public policy %r, treating service as private", raw)
            return NONE_PUBLIC
    if isinstance(raw, Mapping) and _is_valid_route_map(raw):
        return MethodPolicy.from_mapping(raw)
    logger.warning("Malformed public policy %r, treating service as private", raw)
    return NONE_PUBLIC


def is_public(policy: PublicPolicy, method: str, path: str) -> bool:
    """True when (method, path) may be forwarded without a bearer token."""
    if policy is ALL_PUBLIC:
        return True
    if not isinstance(policy, MethodPolicy):
        return False

    templates = policy.templates_for(method)
    if not templates:
        return False

    path = normalize_path(path)
    if any(t.template == path for t in templates):
        return True
    return any(t.matches(path) for t in templates)
