"""Health check endpoints."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
import logging

from ..core.config import settings
from ..core.database import health_check_db
from ..core.performance_monitor import performance_metrics

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }

@router.get("/db")
async def database_health():
    """Database connectivity check"""
    if await health_check_db():
        return {"status": "healthy", "database": "connected"}
    logger.error("Database health check reported unhealthy")
    return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})

@router.get("/metrics")
async def operation_metrics():
    """Timing of monitored service operations"""
    return {"operations": performance_metrics.get_metrics()}
