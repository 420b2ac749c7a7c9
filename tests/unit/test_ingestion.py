"""Unit tests for directory ingestion."""

import pytest
from ocr_image_search.core.exceptions import RecognitionError
from ocr_image_search.core.index import IndexStore
from ocr_image_search.core.ingestion import IngestionCoordinator


class TestIngestionCoordinator:
    """Test cases for the IngestionCoordinator class."""

    @pytest.fixture
    def store(self):
        """In-memory index store."""
        store = IndexStore(":memory:")
        store.initialize()
        yield store
        store.close()

    @pytest.fixture
    def coordinator(self, store, recognizer):
        """Coordinator over the example recognizer."""
        return IngestionCoordinator(store, recognizer)

    def test_scan_example_tree(self, coordinator, store, image_tree):
        """Two images become two records; the text file is ignored."""
        outcomes = coordinator.scan(image_tree)

        assert [outcome.filename for outcome in outcomes] == ["cat.png", "dog.png"]
        assert [outcome.is_document for outcome in outcomes] == [True, False]
        assert not any(outcome.existed for outcome in outcomes)
        assert store.count() == 2

    def test_records_hold_normalized_text(self, coordinator, store, image_tree):
        """Stored text is the normalized recognizer output."""
        outcomes = coordinator.scan(image_tree)

        cat = store.find_by_id(outcomes[0].id)
        dog = store.find_by_id(outcomes[1].id)
        assert cat.ocr_text == "hello world"
        assert cat.path == str(image_tree / "cat.png")
        assert dog.ocr_text == ""
        assert dog.is_document is False

    def test_rescan_is_idempotent(self, coordinator, store, recognizer, image_tree):
        """A second scan reports every path as existing and adds nothing."""
        first = coordinator.scan(image_tree)
        calls_after_first = len(recognizer.calls)

        second = coordinator.scan(image_tree)

        assert all(outcome.existed for outcome in second)
        assert [outcome.id for outcome in second] == [outcome.id for outcome in first]
        assert len(recognizer.calls) == calls_after_first
        assert store.count() == 2

    def test_new_files_picked_up_on_rescan(self, coordinator, store, recognizer, image_tree):
        """Only the new file is recognized on a later scan."""
        coordinator.scan(image_tree)
        (image_tree / "bird.png").write_bytes(b"bird")
        recognizer.outputs["bird.png"] = ("tweet", 75.0)

        outcomes = coordinator.scan(image_tree)

        by_name = {outcome.filename: outcome for outcome in outcomes}
        assert by_name["bird.png"].existed is False
        assert by_name["cat.png"].existed is True
        assert store.count() == 3

    def test_extension_filter_case_insensitive(self, store, tmp_path, make_recognizer):
        """Allowed extensions match regardless of case."""
        for name in ["a.JPG", "b.jpeg", "c.Png", "d.gif", "e.BMP", "f.webp", "g.tiff", "h"]:
            (tmp_path / name).write_bytes(b"x")
        recognizer = make_recognizer({})
        recognizer.outputs = {name: ("text", 50.0) for name in ["a.JPG", "b.jpeg", "c.Png", "d.gif", "e.BMP"]}

        outcomes = IngestionCoordinator(store, recognizer).scan(tmp_path)

        assert [outcome.filename for outcome in outcomes] == ["a.JPG", "b.jpeg", "c.Png", "d.gif", "e.BMP"]

    def test_recursive_walk_order(self, store, tmp_path, make_recognizer):
        """Subdirectories are walked in place, entries in name order."""
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "inner").mkdir()
        for relative in ["a.png", "b/b1.png", "b/inner/deep.png", "b/z.png", "c.png"]:
            (tmp_path / relative).write_bytes(b"x")
        names = ["a.png", "b1.png", "deep.png", "z.png", "c.png"]
        recognizer = make_recognizer({name: ("text", 80.0) for name in names})

        outcomes = IngestionCoordinator(store, recognizer).scan(tmp_path)

        assert [outcome.filename for outcome in outcomes] == names

    def test_recognition_failure_skips_file(self, store, image_tree, make_recognizer):
        """A failing image is left out and the walk continues."""
        (image_tree / "broken.png").write_bytes(b"not really a png")
        recognizer = make_recognizer({
            "broken.png": RecognitionError("broken.png", "cannot identify image"),
            "cat.png": ("Hello World", 90.0),
            "dog.png": ("", 10.0),
        })

        outcomes = IngestionCoordinator(store, recognizer).scan(image_tree)

        assert [outcome.filename for outcome in outcomes] == ["cat.png", "dog.png"]
        assert store.find_by_path(str(image_tree / "broken.png")) is None

    def test_unexpected_recognizer_error_skips_file(self, store, image_tree, make_recognizer):
        """Any recognizer exception only costs that file."""
        recognizer = make_recognizer({
            "cat.png": ValueError("engine crashed"),
            "dog.png": ("", 10.0),
        })

        outcomes = IngestionCoordinator(store, recognizer).scan(image_tree)

        assert [outcome.filename for outcome in outcomes] == ["dog.png"]

    def test_failed_file_retried_next_scan(self, store, image_tree, make_recognizer):
        """Failures are not recorded, so the next scan tries again."""
        recognizer = make_recognizer({"dog.png": ("", 10.0)})
        coordinator = IngestionCoordinator(store, recognizer)
        coordinator.scan(image_tree)

        recognizer.outputs["cat.png"] = ("Hello World", 90.0)
        outcomes = coordinator.scan(image_tree)

        by_name = {outcome.filename: outcome for outcome in outcomes}
        assert by_name["cat.png"].existed is False
        assert by_name["dog.png"].existed is True

    @pytest.mark.parametrize("confidence,expected", [
        (90.0, True),
        (60.1, True),
        (60.0, False),
        (0.0, False),
    ])
    def test_document_threshold(self, store, tmp_path, make_recognizer, confidence, expected):
        """Only confidence strictly above the threshold marks a document."""
        (tmp_path / "page.png").write_bytes(b"x")
        recognizer = make_recognizer({"page.png": ("text", confidence)})

        outcomes = IngestionCoordinator(store, recognizer).scan(tmp_path)

        assert outcomes[0].is_document is expected

    def test_custom_document_threshold(self, store, tmp_path, make_recognizer):
        """The threshold is configurable."""
        (tmp_path / "page.png").write_bytes(b"x")
        recognizer = make_recognizer({"page.png": ("text", 50.0)})

        outcomes = IngestionCoordinator(store, recognizer, document_threshold=40.0).scan(tmp_path)

        assert outcomes[0].is_document is True

    def test_missing_root(self, coordinator, tmp_path):
        """A missing root is an error of the scan itself."""
        with pytest.raises(FileNotFoundError):
            coordinator.scan(tmp_path / "nope")

    def test_root_is_file(self, coordinator, image_tree):
        """A file root is rejected."""
        with pytest.raises(NotADirectoryError):
            coordinator.scan(image_tree / "cat.png")

    def test_empty_tree(self, coordinator, tmp_path):
        """An empty folder yields no outcomes."""
        assert coordinator.scan(tmp_path) == []

    def test_ingest_file_existing(self, coordinator, image_tree):
        """ingest_file reports known paths without recognizing again."""
        first = coordinator.ingest_file(image_tree / "cat.png")
        again = coordinator.ingest_file(image_tree / "cat.png")

        assert again.existed is True
        assert again.id == first.id
        assert len(coordinator.recognizer.calls) == 1
