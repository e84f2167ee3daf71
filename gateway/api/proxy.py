"""
Gateway route - /{service}/... is checked against the public policy, authenticated
if private, then forwarded.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response

from gateway.core.dependencies import AppSettings, AuthenticationError, Forwarder, Registry, authenticate
from gateway.core.metrics import AUTH_REJECTIONS
from gateway.proxy.forwarder import raw_request_path, rewrite_path

router = APIRouter()
logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


async def _dispatch(
    request: Request,
    service: str,
    registry: Registry,
    forwarder: Forwarder,
    settings: AppSettings,
) -> Response:
    entry = registry.get(service)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")

    # Matched and forwarded undecoded: %2F and %3F stay inside their segment
    path = rewrite_path(service, raw_request_path(request))
    user = None
    if not registry.is_public(service, request.method, path):
        try:
            user = authenticate(request, settings)
        except AuthenticationError as e:
            AUTH_REJECTIONS.labels(service, e.reason).inc()
            raise

    return await forwarder.forward(request, entry, path, user)


@router.api_route("/{service}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy_service_root(
    request: Request, service: str, registry: Registry, forwarder: Forwarder, settings: AppSettings
) -> Response:
    return await _dispatch(request, service, registry, forwarder, settings)


@router.api_route("/{service}/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy_service(
    request: Request, service: str, path: str, registry: Registry, forwarder: Forwarder, settings: AppSettings
) -> Response:
    return await _dispatch(request, service, registry, forwarder, settings)
