"""
Health checks - for load balancers, Kubernetes, and monitoring.
Challenge: Fast liveness that also reports which services are routed.
"""

from fastapi import APIRouter

from gateway.core.dependencies import Registry

router = APIRouter()


@router.get("")
async def health(registry: Registry):
    """Liveness: is the process up, and which services does it route?"""
    return {"status": "API Gateway is running", "services": registry.names()}


@router.get("/ready")
async def ready():
    """Readiness: can accept traffic?"""
    return {"status": "ready"}
