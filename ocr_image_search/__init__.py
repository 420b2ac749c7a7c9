"""
OCR Image Search - catalog images by their embedded text and search it.

Images found under a folder are passed through a text recognizer, their
normalized text is stored in a SQLite full-text index, and queries escalate
from prefix and phrase matching to a typo-tolerant fuzzy matcher.
"""

__version__ = "1.0.0"

from .core.engine import SearchEngine
from .core.ingestion import IngestionCoordinator
from .models.records import ImageRecord, ScanOutcome
from .models.response import SearchResult, SearchResponse

__all__ = [
    "SearchEngine",
    "IngestionCoordinator",
    "ImageRecord",
    "ScanOutcome",
    "SearchResult",
    "SearchResponse",
]
