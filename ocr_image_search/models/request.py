"""Request models for API endpoints."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ScanRequest(BaseModel):
    """Request model for directory scans."""
    
    folder: str = Field(..., min_length=1, description="Root directory to scan")

    @field_validator('folder')
    @classmethod
    def validate_folder(cls, v: str) -> str:
        """Reject blank folder paths."""
        if not v.strip():
            raise ValueError("Folder cannot be empty")
        return v.strip()


class SearchRequest(BaseModel):
    """Request model for search queries."""
    
    # Missing, null and empty queries are valid and produce an empty result
    query: Optional[str] = Field(default=None, description="Free-text search query")
