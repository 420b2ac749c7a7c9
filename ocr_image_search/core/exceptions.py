"""Exception types raised by the core components."""


class ImageSearchError(Exception):
    """Base class for errors raised by the OCR image search core."""


class RecognitionError(ImageSearchError):
    """The text recognizer failed on a single image."""
    
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Recognition failed for {path}: {reason}")


class IndexStoreError(ImageSearchError):
    """A query against the full-text index failed."""


class ImageNotFoundError(ImageSearchError):
    """No record exists for the requested image id, or its file is gone."""
    
    def __init__(self, image_id: int) -> None:
        self.image_id = image_id
        super().__init__(f"Image {image_id} not found")
