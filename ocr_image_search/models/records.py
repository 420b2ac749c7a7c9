"""Record types crossing the index store boundary."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ImageRecord(BaseModel):
    """A cataloged image and the normalized text recognized in it."""
    
    id: Optional[int] = Field(None, description="Record id, assigned on insert")
    path: str = Field(..., description="Image path, unique within the store")
    filename: str = Field(..., description="File name derived from the path")
    ocr_text: Optional[str] = Field(None, description="Normalized recognized text")
    is_document: bool = Field(False, description="Recognizer confidence above the document threshold")
    thumbnail: Optional[bytes] = Field(None, exclude=True, description="Opaque thumbnail bytes")
    created_at: Optional[datetime] = Field(None, description="Insertion timestamp")
    
    @classmethod
    def for_path(cls, path: str, ocr_text: Optional[str], is_document: bool) -> "ImageRecord":
        """Build an unsaved record, deriving the file name from the path."""
        return cls(
            path=path,
            filename=Path(path).name,
            ocr_text=ocr_text,
            is_document=is_document,
        )


class ScanOutcome(BaseModel):
    """Per-file result of a directory scan."""
    
    id: int = Field(..., description="Record id")
    path: str = Field(..., description="Image path")
    filename: str = Field(..., description="File name")
    is_document: Optional[bool] = Field(None, description="Set for newly ingested images")
    existed: bool = Field(False, description="True when the path was already cataloged")
