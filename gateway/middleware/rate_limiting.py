"""
Rate limiting middleware - 429 once a client exceeds its window budget.
"""

import logging

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from gateway.core.metrics import RATE_LIMITED

logger = logging.getLogger(__name__)

EXEMPT_PREFIXES = ("/health", "/metrics")


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """Uses app.state.rate_limiter; a missing limiter disables limiting."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        limiter = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or request.url.path.startswith(EXEMPT_PREFIXES):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        result = await limiter.hit(client)
        if result is None:
            return await call_next(request)

        if not result.allowed:
            RATE_LIMITED.inc()
            logger.info("Rate limit exceeded for %s [%s]", client, getattr(request.state, "request_id", "-"))
            headers = result.headers()
            headers["Retry-After"] = str(result.reset_seconds)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": "Too many requests, please try again later."},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(result.headers())
        return response
