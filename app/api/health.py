"""
Health check endpoints for container orchestration.
"""
import time
from typing import Dict, Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.core.database import get_db
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Health check including database connectivity.

    Raises:
        HTTPException: If the database is unreachable
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "document-versions",
        "checks": {}
    }

    try:
        start_time = time.time()
        await db.execute(text("SELECT 1"))
        db_duration = time.time() - start_time

        health_status["checks"]["database"] = {
            "status": "healthy",
            "response_time_ms": round(db_duration * 1000, 2)
        }

    except SQLAlchemyError as e:
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "unhealthy"
        await logger.aerror("Database health check failed", error=str(e))

    if health_status["status"] != "healthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=health_status
        )

    return health_status
