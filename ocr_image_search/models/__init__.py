"""Data models for records, API requests and responses."""

from .records import ImageRecord, ScanOutcome
from .request import ScanRequest, SearchRequest
from .response import SearchResult, SearchResponse, ErrorResponse

__all__ = [
    "ImageRecord",
    "ScanOutcome",
    "ScanRequest",
    "SearchRequest",
    "SearchResult",
    "SearchResponse",
    "ErrorResponse",
]
