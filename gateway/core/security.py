"""
Security: JWT verification for private routes.
Challenge: Reject missing, forged and expired tokens before any upstream call.
Design: Tokens are issued by the auth service with the shared secret; the
gateway only verifies them.
"""

from datetime import datetime, timezone, timedelta
from typing import Any

from jose import JWTError, jwt

from gateway.config import Settings, get_settings


class InvalidTokenError(Exception):
    """Token is malformed, has a bad signature or is expired."""


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token part of an "Authorization: Bearer <token>" header."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) < 2:
        return None
    return parts[1]


def create_access_token(
    subject: str | int,
    extra: dict[str, Any] | None = None,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT the way the auth service does. Used by tests and local tooling."""
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta is not None else timedelta(minutes=settings.jwt_expire_minutes)
    )
    to_encode = {"sub": str(subject), "userId": str(subject), "exp": expire}
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Verify signature and expiry. Raises InvalidTokenError."""
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
