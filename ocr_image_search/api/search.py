"""Search API endpoints."""

from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from ..context import AppContext
from ..models.request import SearchRequest
from ..models.response import SearchResponse, SearchResult
from .dependencies import get_context

router = APIRouter(tags=["search"])
logger = structlog.get_logger(__name__)


@router.post(
    "/api/search",
    response_model=List[SearchResult],
    summary="Search images by text",
    description="Return the images whose recognized text matches the query, best first"
)
def search_images(
    request: SearchRequest,
    context: AppContext = Depends(get_context),
) -> List[SearchResult]:
    """
    Search recognized text and return up to 100 image records.
    
    Empty, null and overlong queries are valid and return an empty list.
    """
    if request.query and len(request.query) > context.settings.max_query_length:
        logger.warning("Query too long, returning no results", length=len(request.query))
        return []

    return context.engine.search_records(request.query)


@router.get(
    "/api/v1/search",
    response_model=SearchResponse,
    summary="Search with diagnostics",
    description="Search and report the tier that answered and whether the index degraded"
)
def search_with_details(
    q: str = Query("", description="Free-text search query"),
    context: AppContext = Depends(get_context),
) -> SearchResponse:
    """
    Search recognized text and return the full response.
    
    ``degraded`` is true when an index query failed and the fuzzy tier
    answered in its place.
    """
    if len(q) > context.settings.max_query_length:
        raise HTTPException(
            status_code=400,
            detail=f"Query too long. Maximum length is {context.settings.max_query_length} characters"
        )
    
    return context.engine.search(q)
