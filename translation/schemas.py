"""
Translation Schemas

Pydantic models for the text translation API.
"""

# Standard library
from typing import List, Optional

# Third-party
from pydantic import BaseModel, Field


class TranslateRequest(BaseModel):
    """
    Request model for an interactive translation.

    Attributes:
        text: Source text, up to MAX_TEXT_LENGTH characters.
        source_lang: Source language code or AUTO.
        target_lang: Target language code.
    """
    text: str = Field(..., min_length=1)
    source_lang: Optional[str] = Field(default="AUTO")
    target_lang: str = Field(..., min_length=2, max_length=10)


class TranslateResponse(BaseModel):
    translated_text: str
    source_lang: str
    target_lang: str
    chunks: int
    fallback_chunks: int = 0


class LatestTranslationResponse(BaseModel):
    """Most recent published state of the interactive translation."""
    generation: int
    source_lang: str
    target_lang: str
    translated_text: str
    completed_chunks: int
    total_chunks: int
    fallback_chunks: int = 0
    done: bool = False


class TextJobRequest(BaseModel):
    """
    Request model for a multi-language text job.

    Attributes:
        text: Source text.
        source_lang: Source language code or AUTO.
        target_langs: Ordered target language codes; duplicates are dropped.
    """
    text: str = Field(..., min_length=1)
    source_lang: Optional[str] = Field(default="AUTO")
    target_langs: List[str] = Field(..., min_length=1)
