"""Metrics and monitoring API endpoints."""

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..context import AppContext
from ..models.response import MetricsResponse
from .dependencies import get_context

router = APIRouter(prefix="/api/v1", tags=["metrics"])


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get performance metrics",
    description="Get query statistics per search tier and store size"
)
def get_metrics(context: AppContext = Depends(get_context)) -> MetricsResponse:
    """
    Get performance metrics for the search engine.
    
    ``degraded_rate`` counts queries answered by the fuzzy tier because an
    index query failed, which otherwise look like ordinary results.
    """
    stats = context.engine.get_stats()
    
    # Resident memory of this process
    memory_usage_mb = psutil.Process().memory_info().rss / (1024 * 1024)
    
    return MetricsResponse(
        total_queries=stats["total_queries"],
        average_response_time_ms=stats["average_execution_time_ms"],
        tier_counts=stats["tier_counts"],
        fuzzy_rate=stats["fuzzy_rate"],
        degraded_rate=stats["degraded_rate"],
        total_images=context.store.count(),
        memory_usage_mb=memory_usage_mb
    )


@router.get(
    "/metrics/detailed",
    summary="Get detailed metrics",
    description="Get engine counters, store statistics and search configuration"
)
def get_detailed_metrics(context: AppContext = Depends(get_context)) -> JSONResponse:
    """Get the raw engine and store statistics plus the active search settings."""
    settings = context.settings
    
    return JSONResponse(
        status_code=200,
        content={
            "engine": context.engine.get_stats(),
            "store": context.store.get_stats(),
            "configuration": {
                "escalation_threshold": settings.escalation_threshold,
                "max_results": settings.max_results,
                "fuzzy_corpus_limit": settings.fuzzy_corpus_limit,
                "document_confidence_threshold": settings.document_confidence_threshold,
            }
        }
    )


@router.post(
    "/metrics/reset",
    summary="Reset metrics",
    description="Reset query statistics"
)
def reset_metrics(context: AppContext = Depends(get_context)) -> JSONResponse:
    """Reset the engine's query counters."""
    context.engine.reset_stats()
    
    return JSONResponse(
        status_code=200,
        content={"message": "Metrics reset successfully"}
    )
