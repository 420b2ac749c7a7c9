"""Application settings and configuration management."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    # Application
    app_name: str = Field(default="OCR Image Search")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    
    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    workers: int = Field(default=1)
    
    # Storage
    database_path: str = Field(default="images.sqlite")
    static_dir: str = Field(default=str(Path(__file__).resolve().parent.parent / "public"))
    
    # Ingestion
    image_extensions: List[str] = Field(
        default=["jpg", "jpeg", "png", "gif", "bmp"]
    )
    document_confidence_threshold: float = Field(default=60.0)
    ocr_language: str = Field(default="eng")
    ocr_timeout: float = Field(default=0.0)  # 0 disables the timeout
    
    # Search Configuration
    escalation_threshold: int = Field(default=3)
    max_results: int = Field(default=100)
    max_query_length: int = Field(default=500)
    fuzzy_corpus_limit: int = Field(default=1000)
    
    # Fuzzy tolerances (per matched term)
    fuzzy_max_substitutions: int = Field(default=1)
    fuzzy_max_transpositions: int = Field(default=1)
    fuzzy_max_deletions: int = Field(default=1)
    fuzzy_max_insertions: int = Field(default=0)
    fuzzy_max_term_edits: int = Field(default=2)
    fuzzy_min_term_length: int = Field(default=3)
    
    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    
    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"]
    )
    
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
