"""Text normalization shared by the ingestion and query paths."""

import re
from typing import List, Optional


class TextNormalizer:
    """Canonicalizes recognized text and queries into one comparable form."""
    
    def __init__(self) -> None:
        """Initialize the normalizer."""
        # Compile regex patterns for performance
        self.whitespace_regex = re.compile(r'\s+')
        
    def normalize(self, text: Optional[str]) -> str:
        """
        Normalize text for consistent processing.
        
        Lower-cases the text, collapses every whitespace run to a single
        space and trims both ends. ``normalize(normalize(x)) == normalize(x)``.
        
        Args:
            text: Input text to normalize, may be None
            
        Returns:
            Normalized text, empty string for None or empty input
        """
        if not text:
            return ""
        
        normalized = text.lower()
        normalized = self.whitespace_regex.sub(' ', normalized)
        
        return normalized.strip()
    
    def tokenize(self, text: Optional[str]) -> List[str]:
        """
        Tokenize text into words.
        
        Args:
            text: Input text
            
        Returns:
            List of non-empty tokens of the normalized text
        """
        normalized = self.normalize(text)
        if not normalized:
            return []
        
        return [token for token in normalized.split(' ') if token]
