"""Shared fixtures: a fake recognizer and a small image tree."""

from pathlib import Path
from typing import Dict, List, Tuple, Union

import pytest

from ocr_image_search.core.exceptions import RecognitionError
from ocr_image_search.core.recognizer import RecognitionResult


class FakeRecognizer:
    """Recognizer answering from a table keyed by file name."""
    
    def __init__(self, outputs: Dict[str, Union[Tuple[str, float], Exception]]) -> None:
        self.outputs = outputs
        self.calls: List[str] = []
    
    def recognize(self, path: str) -> RecognitionResult:
        self.calls.append(path)
        output = self.outputs.get(Path(path).name)
        if output is None:
            raise RecognitionError(path, "no text configured")
        if isinstance(output, Exception):
            raise output
        text, confidence = output
        return RecognitionResult(text=text, confidence=confidence)


@pytest.fixture
def recognizer():
    """Recognizer for the two-image example tree."""
    return FakeRecognizer({
        "cat.png": ("Hello World", 90.0),
        "dog.png": ("", 10.0),
    })


@pytest.fixture
def image_tree(tmp_path):
    """Folder holding cat.png, dog.png and a non-image file."""
    root = tmp_path / "images"
    root.mkdir()
    (root / "cat.png").write_bytes(b"cat-bytes")
    (root / "dog.png").write_bytes(b"dog-bytes")
    (root / "notes.txt").write_text("not an image")
    return root


@pytest.fixture
def make_recognizer():
    """Factory for recognizers with custom outputs."""
    return FakeRecognizer
