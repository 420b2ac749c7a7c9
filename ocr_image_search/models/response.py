"""Response models for API endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .records import ImageRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchResult(ImageRecord):
    """An image record plus the relevance signal of the tier that found it."""
    
    rank: Optional[float] = Field(None, description="Full-text rank (lower is better)")
    score: Optional[float] = Field(None, ge=0.0, le=1.0, description="Fuzzy similarity score (0-1)")


class SearchResponse(BaseModel):
    """Response for search queries."""
    
    query: str = Field(..., description="Original search query")
    normalized_query: str = Field(..., description="Query after normalization")
    tier: str = Field(..., description="Tier that produced the results (none, prefix, phrase, or, fuzzy)")
    degraded: bool = Field(False, description="An index query failed and the fuzzy tier stood in")
    total_results: int = Field(..., description="Total number of results")
    results: List[SearchResult] = Field(..., description="Ranked search results")
    execution_time_ms: float = Field(..., description="Query execution time in milliseconds")
    timestamp: datetime = Field(default_factory=_utcnow, description="Response timestamp")


class ErrorResponse(BaseModel):
    """Error response model."""
    
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    uptime: float = Field(..., description="Service uptime in seconds")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    dependencies: Dict[str, str] = Field(..., description="Dependency status")


class MetricsResponse(BaseModel):
    """Performance metrics response."""
    
    total_queries: int = Field(..., description="Total queries processed")
    average_response_time_ms: float = Field(..., description="Average response time")
    tier_counts: Dict[str, int] = Field(..., description="Queries answered per tier")
    fuzzy_rate: float = Field(..., description="Share of queries escalated to the fuzzy tier")
    degraded_rate: float = Field(..., description="Share of queries degraded by index failures")
    total_images: int = Field(..., description="Records in the index store")
    memory_usage_mb: float = Field(..., description="Process resident memory in MB")
    timestamp: datetime = Field(default_factory=_utcnow, description="Metrics timestamp")
