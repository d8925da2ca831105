"""
Gloo Health Check Endpoints
Liveness, readiness and version probes
"""

from fastapi import APIRouter, HTTPException, status
import asyncio
import time

from core.database import DatabaseHealthCheck
from core.config import settings

router = APIRouter()

READINESS_TIMEOUT = 5.0


@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "timestamp": time.time()
    }


@router.get("/live")
async def liveness_check():
    """Kubernetes liveness probe endpoint"""
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check():
    """
    Kubernetes readiness probe endpoint
    The service is ready once the database answers
    """
    try:
        db_healthy = await asyncio.wait_for(DatabaseHealthCheck.check_connection(), timeout=READINESS_TIMEOUT)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "error": "Health check timeout"}
        )

    if not db_healthy:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "database": "disconnected"}
        )

    return {
        "status": "ready",
        "database": "connected",
        "timestamp": time.time()
    }


@router.get("/version")
async def version_info():
    """Application version information"""
    return {
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }
