"""Health check and monitoring API endpoints."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..context import AppContext
from ..models.response import HealthResponse
from .dependencies import get_context

router = APIRouter(prefix="/api/v1", tags=["health"])

# Track application start time
app_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the image search service"
)
def health_check(context: AppContext = Depends(get_context)) -> HealthResponse:
    """
    Perform a health check on the image search service.
    
    The index store is probed directly; an unreachable store makes the
    service unhealthy, while the search tiers themselves always answer.
    """
    uptime = time.time() - app_start_time
    
    dependencies = {
        "index_store": "healthy",
        "search_engine": "healthy",
    }
    
    try:
        context.store.count()
    except Exception:
        dependencies["index_store"] = "unhealthy"
    
    try:
        context.engine.search("")
    except Exception:
        dependencies["search_engine"] = "unhealthy"
    
    # Determine overall status
    if all(status == "healthy" for status in dependencies.values()):
        status = "healthy"
    else:
        status = "unhealthy"
    
    return HealthResponse(
        status=status,
        version=context.settings.app_version,
        uptime=uptime,
        dependencies=dependencies
    )


@router.get(
    "/health/ready",
    summary="Readiness check",
    description="Check if the service is ready to accept requests"
)
def readiness_check(context: AppContext = Depends(get_context)) -> JSONResponse:
    """Ready once the index store answers."""
    try:
        stats = context.store.get_stats()
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e)
            }
        )
    
    return JSONResponse(
        status_code=200,
        content={
            "status": "ready",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "store_stats": stats
        }
    )


@router.get(
    "/health/live",
    summary="Liveness check",
    description="Check if the service is alive"
)
async def liveness_check() -> JSONResponse:
    """Liveness probe; answers as long as the process does."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "alive",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": time.time() - app_start_time
        }
    )
