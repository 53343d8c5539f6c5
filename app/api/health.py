from fastapi import APIRouter, HTTPException
from app.core.config import settings
from app.database import check_db_connection
from app.utils.time_utils import utcnow

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Application health check endpoint"""
    db_ok = await check_db_connection()

    return {
        "status": "healthy" if db_ok else "unhealthy",
        "timestamp": utcnow(),
        "database": "connected" if db_ok else "disconnected",
        "service": settings.app_name
    }


@router.get("/health/ready")
async def readiness_check():
    """Kubernetes readiness check endpoint"""
    if not await check_db_connection():
        raise HTTPException(
            status_code=503,
            detail="Service not ready - database connection failed"
        )

    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness check endpoint"""
    return {"status": "alive", "timestamp": utcnow()}
