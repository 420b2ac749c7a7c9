"""Text recognition adapters: image file in, recognized text and confidence out."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

import pytesseract
from PIL import Image

from .exceptions import RecognitionError


@dataclass(frozen=True)
class RecognitionResult:
    """Raw recognizer output. ``confidence`` is on a 0-100 scale."""

    text: str
    confidence: float


class TextRecognizer(Protocol):
    """Anything that can turn an image file into text."""

    def recognize(self, path: str) -> RecognitionResult:
        """Recognize the text in the image at ``path``; raise RecognitionError on failure."""
        ...


class TesseractRecognizer:
    """Recognizer backed by the Tesseract engine through pytesseract."""

    def __init__(self, language: str = "eng", timeout: float = 0.0) -> None:
        """
        Initialize the recognizer.

        Args:
            language: Tesseract language code(s), e.g. "eng"
            timeout: Seconds before a recognition call is abandoned, 0 for none
        """
        self.language = language
        self.timeout = timeout

    def recognize(self, path: str) -> RecognitionResult:
        """
        Recognize the text in an image file.

        Args:
            path: Image file path

        Returns:
            RecognitionResult with the page text and mean word confidence,
            both taken from a single Tesseract pass
        """
        try:
            with Image.open(path) as image:
                image.load()
                data = pytesseract.image_to_data(
                    image,
                    lang=self.language,
                    output_type=pytesseract.Output.DICT,
                    timeout=self.timeout,
                )
        except (OSError, RuntimeError, pytesseract.TesseractError) as e:
            # pytesseract signals timeouts with RuntimeError
            raise RecognitionError(path, str(e)) from e

        return RecognitionResult(
            text=self._page_text(data),
            confidence=self._mean_confidence(data),
        )

    @staticmethod
    def _page_text(data: dict) -> str:
        """Rebuild the page text from the word table, one output line per text line."""
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        keys = zip(
            data.get("block_num", []), data.get("par_num", []), data.get("line_num", [])
        )
        for key, word in zip(keys, data.get("text", [])):
            word = (word or "").strip()
            if word:
                lines.setdefault(key, []).append(word)

        return "\n".join(" ".join(words) for words in lines.values())

    @staticmethod
    def _mean_confidence(data: dict) -> float:
        """Average confidence of the recognized words; 0 when none were found."""
        confidences: List[float] = []
        for word, raw_conf in zip(data.get("text", []), data.get("conf", [])):
            if not (word or "").strip():
                continue
            conf = _to_float(raw_conf)
            if conf is not None and conf >= 0.0:
                confidences.append(conf)

        if not confidences:
            return 0.0
        return sum(confidences) / len(confidences)


def _to_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
