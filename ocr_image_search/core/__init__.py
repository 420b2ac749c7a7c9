"""Core ingestion and search functionality."""

from .engine import SearchEngine
from .fuzzy_matcher import FuzzyMatch, FuzzyMatcher
from .index import IndexStore
from .ingestion import IngestionCoordinator
from .normalizer import TextNormalizer
from .recognizer import RecognitionResult, TesseractRecognizer, TextRecognizer

__all__ = [
    "SearchEngine",
    "FuzzyMatch",
    "FuzzyMatcher",
    "IndexStore",
    "IngestionCoordinator",
    "TextNormalizer",
    "RecognitionResult",
    "TesseractRecognizer",
    "TextRecognizer",
]
