"""Unit tests for the SQLite index store."""

import sqlite3

import pytest
from ocr_image_search.core.exceptions import IndexStoreError
from ocr_image_search.core.index import IndexStore, quote_term
from ocr_image_search.models.records import ImageRecord


def make_record(path, text, is_document=True):
    return ImageRecord.for_path(path, ocr_text=text, is_document=is_document)


class TestIndexStore:
    """Test cases for the IndexStore class."""

    @pytest.fixture
    def store(self):
        """Create an in-memory store for testing."""
        store = IndexStore(":memory:")
        store.initialize()
        yield store
        store.close()

    @pytest.fixture
    def populated_store(self, store):
        """Store holding a few records with known text."""
        store.insert(make_record("/img/cat.png", "hello world"))
        store.insert(make_record("/img/dog.png", "", is_document=False))
        store.insert(make_record("/img/receipt.jpg", "grocery receipt total 12.50"))
        store.insert(make_record("/img/sign.jpg", "world peace now"))
        return store

    def test_initialize_is_repeatable(self, store):
        """Creating the schema twice is harmless."""
        store.initialize()
        assert store.count() == 0

    def test_insert_assigns_ids(self, store):
        """Ids are assigned on insert, in insertion order."""
        first = store.insert(make_record("/img/a.png", "alpha"))
        second = store.insert(make_record("/img/b.png", "beta"))

        assert second > first
        assert store.count() == 2

    def test_find_by_path(self, populated_store):
        """Path lookup returns the record id or None."""
        record_id = populated_store.find_by_path("/img/cat.png")

        assert record_id is not None
        assert populated_store.find_by_path("/img/missing.png") is None

    def test_find_by_id(self, populated_store):
        """Id lookup returns the full record."""
        record_id = populated_store.find_by_path("/img/cat.png")
        record = populated_store.find_by_id(record_id)

        assert record.id == record_id
        assert record.path == "/img/cat.png"
        assert record.filename == "cat.png"
        assert record.ocr_text == "hello world"
        assert record.is_document is True
        assert record.created_at is not None

    def test_find_by_id_missing(self, populated_store):
        """Unknown ids give None."""
        assert populated_store.find_by_id(9999) is None

    def test_insert_existing_path_returns_existing_id(self, populated_store):
        """A second insert for the same path writes nothing."""
        original_id = populated_store.find_by_path("/img/cat.png")
        count = populated_store.count()

        record_id = populated_store.insert(make_record("/img/cat.png", "other text"))

        assert record_id == original_id
        assert populated_store.count() == count
        assert populated_store.find_by_id(original_id).ocr_text == "hello world"

    def test_query_prefix(self, populated_store):
        """A term matches tokens it prefixes."""
        results = populated_store.query_prefix("hel")

        assert [record.filename for record, _ in results] == ["cat.png"]

    def test_query_prefix_no_match(self, populated_store):
        """Misspellings find nothing in the index."""
        assert populated_store.query_prefix("wrold") == []

    def test_query_phrase(self, populated_store):
        """Phrases must appear contiguously and in order."""
        in_order = populated_store.query_phrase("hello world")
        reversed_order = populated_store.query_phrase("world hello")

        assert [record.filename for record, _ in in_order] == ["cat.png"]
        assert reversed_order == []

    def test_query_or(self, populated_store):
        """Any prefixed term is enough."""
        results = populated_store.query_or(["xyz", "wor"])

        assert {record.filename for record, _ in results} == {"cat.png", "sign.jpg"}

    def test_query_or_empty_terms(self, populated_store):
        """No terms, no results."""
        assert populated_store.query_or([]) == []

    def test_ranking_prefers_more_occurrences(self, store):
        """Records with more occurrences of the term rank first."""
        store.insert(make_record("/img/once.png", "invoice for services lorem ipsum dolor"))
        store.insert(make_record("/img/thrice.png", "invoice invoice invoice total"))

        results = store.query_prefix("invoice")

        assert [record.filename for record, _ in results] == ["thrice.png", "once.png"]
        assert results[0][1] <= results[1][1]

    def test_equal_rank_ordered_by_id(self, store):
        """Ties in rank are broken by ascending id."""
        ids = [store.insert(make_record(f"/img/{i}.png", "same text here")) for i in range(5)]

        results = store.query_phrase("same text")

        assert [record.id for record, _ in results] == ids

    def test_query_limit(self, store):
        """Full-text queries return at most ``limit`` records."""
        for i in range(20):
            store.insert(make_record(f"/img/{i}.png", f"label {i}"))

        assert len(store.query_prefix("label", limit=5)) == 5

    def test_punctuation_does_not_break_queries(self, populated_store):
        """Quotes and operators inside terms are treated as text."""
        assert populated_store.query_prefix('"hello') != []
        assert populated_store.query_phrase("hello, world") != []
        assert populated_store.query_or(["and", "or*", "hello"]) != []

    def test_quote_term(self):
        """Embedded double quotes are doubled."""
        assert quote_term('say "hi"') == '"say ""hi"""'

    def test_scan_all_returns_most_recent_in_id_order(self, store):
        """The cap keeps the newest records, listed oldest first."""
        ids = [store.insert(make_record(f"/img/{i}.png", f"text {i}")) for i in range(10)]

        records = store.scan_all(limit=4)

        assert [record.id for record in records] == ids[-4:]

    def test_scan_all_zero_limit(self, populated_store):
        """A zero cap scans nothing."""
        assert populated_store.scan_all(0) == []

    def test_stats(self, populated_store):
        """Statistics reflect stored records."""
        stats = populated_store.get_stats()

        assert stats["total_images"] == 4
        assert stats["indexed_images"] == 4
        assert stats["documents"] == 3

    def test_closed_store_raises(self):
        """Operations after close fail with IndexStoreError."""
        store = IndexStore(":memory:")
        store.initialize()
        store.close()

        with pytest.raises(IndexStoreError):
            store.query_prefix("hello")
        with pytest.raises(IndexStoreError):
            store.count()

    def test_close_twice(self):
        """Closing is idempotent."""
        store = IndexStore(":memory:")
        store.close()
        store.close()

    def test_persists_across_reopen(self, tmp_path):
        """Records and the text index survive reopening the file."""
        path = tmp_path / "images.sqlite"
        store = IndexStore(path)
        store.initialize()
        store.insert(make_record("/img/cat.png", "hello world"))
        store.close()

        reopened = IndexStore(path)
        reopened.initialize()
        try:
            assert reopened.count() == 1
            assert reopened.find_by_path("/img/cat.png") is not None
            assert len(reopened.query_prefix("hello")) == 1
        finally:
            reopened.close()

    def test_failed_insert_rolls_back(self, store):
        """A failure writing the index entry leaves no record behind."""
        with store.connection() as conn:
            conn.execute("DROP TABLE image_fts")

        with pytest.raises(sqlite3.OperationalError):
            store.insert(make_record("/img/cat.png", "hello world"))

        assert store.count() == 0
        assert store.find_by_path("/img/cat.png") is None
