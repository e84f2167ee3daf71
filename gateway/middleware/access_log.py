"""
Access log - one line per request (method, path, status, duration, request ID, client).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("gateway.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        client = request.client.host if request.client else "-"
        request_id = getattr(request.state, "request_id", "-")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                '%s "%s %s" 500 %.3fs [%s]',
                client, request.method, request.url.path, time.perf_counter() - start, request_id,
            )
            raise
        logger.info(
            '%s "%s %s" %d %.3fs [%s] "%s"',
            client,
            request.method,
            request.url.path,
            response.status_code,
            time.perf_counter() - start,
            request_id,
            request.headers.get("user-agent", "-"),
        )
        return response
