"""
Status API routes.
"""
from fastapi import APIRouter, Response
from loguru import logger
from sqlalchemy import text

from presetarr import __version__
from presetarr.database import AsyncSessionLocal

router = APIRouter(prefix="/api/status", tags=["status"])


@router.get("/health")
async def health_check():
    """Combined health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness probe - checks database connectivity.
    Used by load balancers to determine if traffic should be routed here.
    """
    checks = {"database": False}

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        logger.warning(f"Readiness check - database failed: {e}")

    if all(checks.values()):
        return {"status": "ready", "checks": checks}
    return Response(
        content='{"status": "not_ready", "checks": {"database": false}}',
        status_code=503,
        media_type="application/json"
    )
