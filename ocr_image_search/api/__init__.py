"""API endpoints for the OCR image search service."""

from .search import router as search_router
from .scan import router as scan_router
from .images import router as images_router
from .health import router as health_router
from .metrics import router as metrics_router

__all__ = [
    "search_router",
    "scan_router",
    "images_router",
    "health_router",
    "metrics_router",
]
