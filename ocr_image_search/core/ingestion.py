"""Directory ingestion: walk a tree, recognize new images, persist them."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import structlog

from ..models.records import ImageRecord, ScanOutcome
from .exceptions import RecognitionError
from .index import IndexStore
from .normalizer import TextNormalizer
from .recognizer import TextRecognizer

logger = structlog.get_logger(__name__)

DEFAULT_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "bmp")


@dataclass
class ScanSummary:
    """Counters for one scan."""

    ingested: int = 0
    existing: int = 0
    failed: int = 0
    skipped: int = 0


class IngestionCoordinator:
    """Keeps the index store in step with the images found on disk.

    Files are processed strictly one at a time; a failure on one file is
    logged and the walk continues. Records are only ever added.
    """

    def __init__(
        self,
        store: IndexStore,
        recognizer: TextRecognizer,
        normalizer: Optional[TextNormalizer] = None,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        document_threshold: float = 60.0,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            store: Index store receiving new records
            recognizer: Text recognizer invoked once per new image
            normalizer: Text normalizer applied to recognized text
            extensions: Allowed file extensions, without the dot
            document_threshold: Confidence above which an image is a document
        """
        self.store = store
        self.recognizer = recognizer
        self.normalizer = normalizer or TextNormalizer()
        self.extensions = {ext.lower().lstrip(".") for ext in extensions}
        self.document_threshold = document_threshold

    def scan(self, root_path: Union[Path, str]) -> List[ScanOutcome]:
        """
        Ingest every image under ``root_path``.

        Args:
            root_path: Directory to walk recursively

        Returns:
            One outcome per new or already known image, in walk order;
            images that failed recognition are omitted

        Raises:
            FileNotFoundError: ``root_path`` does not exist
            NotADirectoryError: ``root_path`` is not a directory
        """
        root = Path(root_path)
        if not root.exists():
            raise FileNotFoundError(f"No such directory: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        logger.info("Scan started", root=str(root))
        summary = ScanSummary()
        outcomes: List[ScanOutcome] = []

        for file_path in self._walk(root):
            if not self.is_image(file_path):
                summary.skipped += 1
                continue

            outcome = self.ingest_file(file_path)
            if outcome is None:
                summary.failed += 1
                continue

            if outcome.existed:
                summary.existing += 1
            else:
                summary.ingested += 1
            outcomes.append(outcome)

        logger.info(
            "Scan finished",
            root=str(root),
            ingested=summary.ingested,
            existing=summary.existing,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return outcomes

    def ingest_file(self, file_path: Union[Path, str]) -> Optional[ScanOutcome]:
        """
        Ingest a single image unless its path is already cataloged.

        Returns:
            The outcome, or None when recognition failed
        """
        path = str(file_path)
        filename = Path(path).name

        existing_id = self.store.find_by_path(path)
        if existing_id is not None:
            return ScanOutcome(id=existing_id, path=path, filename=filename, existed=True)

        logger.info("Processing image", path=path)
        try:
            recognized = self.recognizer.recognize(path)
        except RecognitionError as e:
            logger.warning("Recognition failed, skipping image", path=path, reason=e.reason)
            return None
        except Exception as e:
            logger.error("Unexpected recognizer error, skipping image", path=path, error=str(e), exc_info=True)
            return None

        is_document = recognized.confidence > self.document_threshold
        record = ImageRecord.for_path(
            path,
            ocr_text=self.normalizer.normalize(recognized.text),
            is_document=is_document,
        )
        record_id = self.store.insert(record)

        return ScanOutcome(
            id=record_id,
            path=path,
            filename=filename,
            is_document=is_document,
        )

    def is_image(self, file_path: Union[Path, str]) -> bool:
        """Whether the file extension is on the allow-list (case-insensitive)."""
        suffix = Path(file_path).suffix.lower().lstrip(".")
        return suffix in self.extensions

    def _walk(self, root: Path) -> Iterator[Path]:
        """Yield files under ``root`` using an explicit stack of directories.

        Entries of a directory are visited in name order; a subdirectory is
        fully walked before the entries that follow it.
        """
        pending: List[Iterator[os.DirEntry]] = [self._entries(root)]

        while pending:
            entry = next(pending[-1], None)
            if entry is None:
                pending.pop()
                continue

            if entry.is_dir():
                pending.append(self._entries(Path(entry.path)))
            elif entry.is_file():
                yield Path(entry.path)

    @staticmethod
    def _entries(directory: Path) -> Iterator[os.DirEntry]:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
        return iter(entries)
