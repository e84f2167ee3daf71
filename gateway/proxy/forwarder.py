"""
Reverse proxy - forwards a gateway request to its downstream service.
Challenge: Strip the service prefix, carry correlation and identity headers,
turn upstream failures into clean 502/504 responses.
Design: One shared httpx.AsyncClient (connection pooling), built in create_app and closed in the lifespan.
"""

import logging
import time
from collections.abc import Iterable
from typing import Any

import httpx
from fastapi import Request, status
from fastapi.responses import JSONResponse, Response

from gateway.core.metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS
from gateway.routing.registry import ServiceEntry

logger = logging.getLogger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# Never forwarded as sent by the client: set by the gateway itself
_GATEWAY_HEADERS = frozenset({"host", "content-length", "x-request-id", "x-user-id"})

# httpx already decoded the body; Starlette sets its own length
_RESPONSE_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def raw_request_path(request: Request) -> str:
    """Path as the client sent it, percent-escapes intact, without the query string."""
    raw = request.scope.get("raw_path")
    if raw is None:
        return request.url.path
    return raw.decode("latin-1").split("?", 1)[0]


def rewrite_path(service: str, path: str) -> str:
    """/catalog/products/42 -> /products/42; /catalog -> /."""
    prefix = f"/{service}"
    if path == prefix or path.startswith(prefix + "/"):
        path = path[len(prefix):]
    return path or "/"


def user_id_from_claims(user: dict[str, Any] | None) -> str | None:
    if not user:
        return None
    user_id = user.get("userId", user.get("sub"))
    return str(user_id) if user_id is not None else None


def build_upstream_headers(
    headers: Iterable[tuple[str, str]],
    request_id: str,
    user: dict[str, Any] | None = None,
) -> list[tuple[str, str]]:
    """Copy client headers for the upstream call and add X-Request-ID / X-User-ID."""
    forwarded = [
        (key, value)
        for key, value in headers
        if key.lower() not in HOP_BY_HOP_HEADERS and key.lower() not in _GATEWAY_HEADERS
    ]
    forwarded.append(("X-Request-ID", request_id))
    user_id = user_id_from_claims(user)
    if user_id is not None:
        forwarded.append(("X-User-ID", user_id))
    return forwarded


class ProxyForwarder:
    """Sends requests to downstream services over a shared client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @classmethod
    def create(cls, timeout: float, transport: httpx.AsyncBaseTransport | None = None) -> "ProxyForwarder":
        client = httpx.AsyncClient(timeout=timeout, follow_redirects=False, transport=transport)
        return cls(client)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def forward(
        self,
        request: Request,
        entry: ServiceEntry,
        path: str,
        user: dict[str, Any] | None = None,
    ) -> Response:
        request_id = getattr(request.state, "request_id", "")
        url = f"{entry.base_url}{path}"
        if request.url.query:
            url = f"{url}?{request.url.query}"

        body = await request.body()
        headers = build_upstream_headers(request.headers.items(), request_id, user)

        start = time.perf_counter()
        try:
            upstream = await self.client.request(request.method, url, content=body, headers=headers)
        except httpx.TimeoutException:
            logger.error("Upstream timeout [%s] %s %s", request_id, request.method, url)
            UPSTREAM_REQUESTS.labels(entry.name, request.method, "504").inc()
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"message": f"Service '{entry.name}' timed out", "requestId": request_id},
            )
        except httpx.HTTPError as e:
            logger.error("Upstream error [%s] %s %s: %s", request_id, request.method, url, e)
            UPSTREAM_REQUESTS.labels(entry.name, request.method, "502").inc()
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={"message": f"Service '{entry.name}' unavailable", "requestId": request_id},
            )
        finally:
            UPSTREAM_LATENCY.labels(entry.name).observe(time.perf_counter() - start)

        UPSTREAM_REQUESTS.labels(entry.name, request.method, str(upstream.status_code)).inc()

        response = Response(content=upstream.content, status_code=upstream.status_code)
        for key, value in upstream.headers.multi_items():
            if key.lower() not in _RESPONSE_SKIP_HEADERS:
                response.headers.append(key, value)
        return response
