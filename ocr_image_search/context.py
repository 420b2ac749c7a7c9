"""Application context owning the store, search engine and ingestion pipeline."""

import threading
from pathlib import Path
from typing import List, Optional, Union

import structlog

from .config import Settings
from .core.engine import SearchEngine
from .core.fuzzy_matcher import FuzzyMatcher
from .core.index import IndexStore
from .core.ingestion import IngestionCoordinator
from .core.normalizer import TextNormalizer
from .core.recognizer import TesseractRecognizer, TextRecognizer
from .models.records import ScanOutcome

logger = structlog.get_logger(__name__)


class AppContext:
    """Everything an operation needs, created once at startup.

    Scans are serialized through ``scan_lock`` so the store has a single
    writer at a time. ``close()`` releases the store handle.
    """

    def __init__(
        self,
        settings: Settings,
        store: IndexStore,
        engine: SearchEngine,
        ingestion: IngestionCoordinator,
    ) -> None:
        self.settings = settings
        self.store = store
        self.engine = engine
        self.ingestion = ingestion
        self.scan_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        recognizer: Optional[TextRecognizer] = None,
    ) -> "AppContext":
        """
        Build the context described by ``settings``.

        Args:
            settings: Application settings
            recognizer: Text recognizer (Tesseract if None)
        """
        store = IndexStore(settings.database_path)
        store.initialize()

        normalizer = TextNormalizer()
        matcher = FuzzyMatcher(
            max_substitutions=settings.fuzzy_max_substitutions,
            max_transpositions=settings.fuzzy_max_transpositions,
            max_deletions=settings.fuzzy_max_deletions,
            max_insertions=settings.fuzzy_max_insertions,
            max_term_edits=settings.fuzzy_max_term_edits,
            min_term_length=settings.fuzzy_min_term_length,
            max_results=settings.max_results,
        )
        engine = SearchEngine(
            store,
            fuzzy_matcher=matcher,
            normalizer=normalizer,
            escalation_threshold=settings.escalation_threshold,
            max_results=settings.max_results,
            fuzzy_corpus_limit=settings.fuzzy_corpus_limit,
        )

        if recognizer is None:
            recognizer = TesseractRecognizer(
                language=settings.ocr_language, timeout=settings.ocr_timeout
            )
        ingestion = IngestionCoordinator(
            store,
            recognizer,
            normalizer=normalizer,
            extensions=settings.image_extensions,
            document_threshold=settings.document_confidence_threshold,
        )

        return cls(settings, store, engine, ingestion)

    def scan(self, folder: Union[Path, str]) -> List[ScanOutcome]:
        """Run one directory scan; concurrent callers wait their turn."""
        with self.scan_lock:
            return self.ingestion.scan(folder)

    def close(self) -> None:
        """Release the store handle."""
        self.store.close()
