"""
Health check endpoints.

Used for monitoring and load balancer health checks.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import platform

from api.dependencies import get_gateway_registry
from core.settings import get_app_settings


router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns system health status.
    """
    settings = get_app_settings().app
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.name,
        "environment": settings.environment,
        "version": "1.0.0",
        "python_version": platform.python_version(),
    }


@router.get("/health/ready")
async def readiness_check(registry=Depends(get_gateway_registry)):
    """
    Readiness check endpoint.

    Ready once at least one payment gateway is registered.
    """
    providers = registry.supported_providers()
    return {
        "status": "ready" if providers else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "api": "ok",
            "payment_gateways": providers,
        },
    }
