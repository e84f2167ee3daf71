"""
FastAPI dependencies - registry, forwarder, settings and the authentication gate.
Challenge: Private routes must fail with 401 before the proxy touches the network.
"""

import logging
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status

from gateway.config import Settings
from gateway.core.security import InvalidTokenError, decode_access_token, extract_bearer_token
from gateway.proxy.forwarder import ProxyForwarder
from gateway.routing.registry import ServiceRegistry

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


def get_forwarder(request: Request) -> ProxyForwarder:
    return request.app.state.forwarder


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Registry = Annotated[ServiceRegistry, Depends(get_registry)]
Forwarder = Annotated[ProxyForwarder, Depends(get_forwarder)]


class AuthenticationError(HTTPException):
    """401 with the reason kept for metrics."""

    def __init__(self, detail: str, reason: str):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
        self.reason = reason


def authenticate(request: Request, settings: Settings) -> dict[str, Any]:
    """Verify the bearer token and store its claims on request.state.user."""
    token = extract_bearer_token(request.headers.get("authorization"))
    if not token:
        raise AuthenticationError("No token provided", reason="missing")
    try:
        claims = decode_access_token(token, settings)
    except InvalidTokenError as e:
        logger.warning(
            "Authentication error [%s]: %s", getattr(request.state, "request_id", "-"), e
        )
        raise AuthenticationError("Invalid token", reason="invalid") from e
    request.state.user = claims
    return claims
