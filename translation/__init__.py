"""
Translation Module

Chunking, retrying and windowed scheduling of text translation against an
unreliable upstream API.
"""

# Core pipeline pieces - no web dependencies
from translation.assembler import assemble
from translation.chunker import Chunk, split_text
from translation.errors import TranslationSuperseded, UpstreamError
from translation.retry import RetryingTranslator, UnitResult
from translation.scheduler import BatchResult, BatchScheduler, RequestGeneration

__all__ = [
    "assemble",
    "Chunk",
    "split_text",
    "TranslationSuperseded",
    "UpstreamError",
    "RetryingTranslator",
    "UnitResult",
    "BatchResult",
    "BatchScheduler",
    "RequestGeneration",
]
