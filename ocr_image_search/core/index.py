"""SQLite-backed record store with an FTS5 text index over recognized text."""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import structlog

from ..models.records import ImageRecord
from .exceptions import IndexStoreError

logger = structlog.get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS images (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT NOT NULL,
    filename TEXT NOT NULL,
    ocr_text TEXT,
    is_document INTEGER NOT NULL DEFAULT 0,
    thumbnail BLOB,
    created_at TEXT NOT NULL
);

-- Lookup index for path dedup; uniqueness is enforced on insert
CREATE INDEX IF NOT EXISTS idx_images_path ON images(path);

-- Full-text mirror of images.ocr_text, keyed by images.id
CREATE VIRTUAL TABLE IF NOT EXISTS image_fts USING fts5(
    ocr_text,
    content='images',
    content_rowid='id'
);
"""

_MATCH_QUERY = """
SELECT images.*, bm25(image_fts) AS fts_rank
FROM image_fts
JOIN images ON image_fts.rowid = images.id
WHERE image_fts MATCH ?
ORDER BY fts_rank, images.id
LIMIT ?
"""

RankedRecords = List[Tuple[ImageRecord, float]]


def quote_term(term: str) -> str:
    """Quote a term as an FTS5 string so punctuation is never parsed as syntax."""
    return '"' + term.replace('"', '""') + '"'


class IndexStore:
    """Durable store of image records plus their inverted text index.

    A single connection is shared and guarded by a lock, so readers never
    observe a record whose index entry has not been written yet.
    """

    def __init__(self, path: Union[Path, str]) -> None:
        """
        Open (or create) the store file.

        Args:
            path: SQLite database file, or ":memory:"
        """
        self.path = str(path)
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            self.path,
            check_same_thread=False,
            isolation_level=None,  # transactions are explicit
        )
        self._conn.row_factory = sqlite3.Row

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager yielding the shared connection under the store lock."""
        with self._lock:
            if self._conn is None:
                raise IndexStoreError(f"Index store {self.path} is closed")
            yield self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed writes as one atomic transaction."""
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.execute("COMMIT")
            except Exception:
                conn.execute("ROLLBACK")
                raise

    def initialize(self) -> None:
        """Create schema if not exists."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)
        logger.info("Index store ready", database=self.path)

    def close(self) -> None:
        """Release the database handle. Further calls raise IndexStoreError."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Index store closed", database=self.path)

    # Write path

    def insert(self, record: ImageRecord) -> int:
        """
        Persist a record and its text index entry in one transaction.

        The path is checked again inside the transaction; if another writer
        got there first the existing id is returned and nothing is written.

        Args:
            record: Unsaved record (``id`` is ignored)

        Returns:
            Id of the stored record
        """
        created_at = record.created_at or datetime.now(timezone.utc)

        with self.transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM images WHERE path = ? ORDER BY id LIMIT 1",
                (record.path,),
            ).fetchone()
            if existing:
                return existing["id"]

            cursor = conn.execute(
                """INSERT INTO images (path, filename, ocr_text, is_document, thumbnail, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    record.path,
                    record.filename,
                    record.ocr_text,
                    1 if record.is_document else 0,
                    record.thumbnail,
                    created_at.isoformat(),
                ),
            )
            record_id = cursor.lastrowid

            if record.ocr_text is not None:
                conn.execute(
                    "INSERT INTO image_fts (rowid, ocr_text) VALUES (?, ?)",
                    (record_id, record.ocr_text),
                )

        return record_id

    # Lookups

    def find_by_path(self, path: str) -> Optional[int]:
        """Return the id of the record stored under ``path``, if any."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT id FROM images WHERE path = ? ORDER BY id LIMIT 1", (path,)
            ).fetchone()
            return row["id"] if row else None

    def find_by_id(self, record_id: int) -> Optional[ImageRecord]:
        """Return the record with ``record_id``, if any."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT * FROM images WHERE id = ?", (record_id,)
            ).fetchone()
            return self._to_record(row) if row else None

    def scan_all(self, limit: int) -> List[ImageRecord]:
        """
        Return at most ``limit`` records, the most recently inserted ones,
        in ascending id order.
        """
        if limit <= 0:
            return []

        with self.connection() as conn:
            rows = conn.execute(
                """SELECT * FROM (
                       SELECT * FROM images ORDER BY id DESC LIMIT ?
                   ) ORDER BY id""",
                (limit,),
            ).fetchall()
            return [self._to_record(row) for row in rows]

    def count(self) -> int:
        """Number of records in the store."""
        with self.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM images").fetchone()[0]

    # Full-text queries

    def query_prefix(self, term: str, limit: int = 100) -> RankedRecords:
        """Records containing a token starting with ``term``."""
        return self._match(f"{quote_term(term)}*", limit)

    def query_phrase(self, phrase: str, limit: int = 100) -> RankedRecords:
        """Records containing the tokens of ``phrase`` contiguously and in order."""
        return self._match(quote_term(phrase), limit)

    def query_or(self, terms: List[str], limit: int = 100) -> RankedRecords:
        """Records containing a token starting with any one of ``terms``."""
        if not terms:
            return []
        expression = " OR ".join(f"{quote_term(term)}*" for term in terms)
        return self._match(expression, limit)

    def _match(self, expression: str, limit: int) -> RankedRecords:
        """Run an FTS5 MATCH, ordered by bm25 rank then id."""
        try:
            with self.connection() as conn:
                rows = conn.execute(_MATCH_QUERY, (expression, limit)).fetchall()
        except sqlite3.Error as e:
            raise IndexStoreError(f"Full-text query {expression!r} failed: {e}") from e

        return [(self._to_record(row), float(row["fts_rank"])) for row in rows]

    def get_stats(self) -> Dict[str, any]:
        """Get store statistics."""
        with self.connection() as conn:
            total = conn.execute("SELECT COUNT(*) FROM images").fetchone()[0]
            indexed = conn.execute(
                "SELECT COUNT(*) FROM images WHERE ocr_text IS NOT NULL"
            ).fetchone()[0]
            documents = conn.execute(
                "SELECT COUNT(*) FROM images WHERE is_document = 1"
            ).fetchone()[0]

        return {
            "database_path": self.path,
            "total_images": total,
            "indexed_images": indexed,
            "documents": documents,
        }

    @staticmethod
    def _to_record(row: sqlite3.Row) -> ImageRecord:
        return ImageRecord(
            id=row["id"],
            path=row["path"],
            filename=row["filename"],
            ocr_text=row["ocr_text"],
            is_document=bool(row["is_document"]),
            thumbnail=row["thumbnail"],
            created_at=row["created_at"],
        )
