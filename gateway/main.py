"""
FastAPI application entry point.
Challenge: Single front door for the marketplace services: request IDs, rate limits,
public-route checks, JWT auth and proxying, plus health and Prometheus metrics.
Design: Registry, proxy client and rate limiter are built once in create_app and
kept on app.state; lifespan closes them on shutdown.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from gateway.api import health, metrics, proxy
from gateway.config import Settings, get_settings
from gateway.core.errors import register_exception_handlers
from gateway.core.logging import setup_logging
from gateway.core.rate_limit import FixedWindowRateLimiter
from gateway.middleware.access_log import AccessLogMiddleware
from gateway.middleware.rate_limiting import RateLimitingMiddleware
from gateway.middleware.request_id import RequestIdMiddleware
from gateway.middleware.security_headers import SecurityHeadersMiddleware
from gateway.proxy.forwarder import ProxyForwarder
from gateway.routing.registry import ServiceRegistry, build_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: log the routing table. Shutdown: close the proxy and Redis clients."""
    settings: Settings = app.state.settings
    logger.info("%s starting on port %s", settings.app_name, settings.port)
    for entry in app.state.registry.values():
        logger.info("Routing /%s -> %s", entry.name, entry.base_url)
    yield
    logger.info("Shutting down gracefully")
    await app.state.forwarder.aclose()
    if app.state.rate_limiter is not None:
        await app.state.rate_limiter.aclose()


def create_rate_limiter(settings: Settings) -> FixedWindowRateLimiter | None:
    if not settings.rate_limit_enabled:
        return None
    redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    return FixedWindowRateLimiter(
        redis,
        limit=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def create_app(
    settings: Settings | None = None,
    registry: ServiceRegistry | None = None,
    forwarder: ProxyForwarder | None = None,
    rate_limiter: FixedWindowRateLimiter | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        description="API gateway for the PlataMX marketplace services.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.registry = registry or build_registry(settings)
    app.state.forwarder = forwarder or ProxyForwarder.create(timeout=settings.proxy_timeout_seconds)
    app.state.rate_limiter = rate_limiter if rate_limiter is not None else create_rate_limiter(settings)

    register_exception_handlers(app)

    # Last added runs first: request ID must exist before logging and limiting
    app.add_middleware(RateLimitingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics at /metrics
    app.include_router(metrics.router, tags=["metrics"])
    app.include_router(health.router, prefix="/health", tags=["health"])
    # Catch-all /{service}/... must stay last
    app.include_router(proxy.router, tags=["proxy"])

    return app


app = create_app()
