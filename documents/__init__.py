"""
Documents Module

Job state machine, serial document queue and the document translation API.
"""

from documents.models import DocumentQueueItem, LanguageResult, TranslationJob
from documents.store import InMemoryJobStore, JobStore

__all__ = [
    "DocumentQueueItem",
    "LanguageResult",
    "TranslationJob",
    "InMemoryJobStore",
    "JobStore",
]
