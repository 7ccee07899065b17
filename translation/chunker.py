"""
Translation Chunker Module

Splits large text into ordered, boundary-respecting chunks small enough for a
single upstream translation call. Cuts prefer paragraph breaks, then sentence
ends, then line breaks and spaces, and only fall back to a hard cut when no
boundary exists near the window end.
"""

# Standard library
import logging
from dataclasses import dataclass
from typing import List, Tuple

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_MARGIN = 50

# (separator, characters kept on the left piece), highest priority first.
# Sentence punctuation stays with the sentence it ends.
SEPARATORS: Tuple[Tuple[str, int], ...] = (
    ("\n\n", 0),
    (". ", 1),
    (".\n", 1),
    ("! ", 1),
    ("!\n", 1),
    ("? ", 1),
    ("?\n", 1),
    ("\n", 0),
    (" ", 0),
)


@dataclass(frozen=True)
class Chunk:
    """
    One ordered slice of the source text.

    Attributes:
        index: Dense position among retained chunks.
        text: Trimmed chunk content.
        separator: Whitespace consumed between this chunk and the next one
            ("" for the last chunk or after a hard cut).
    """

    index: int
    text: str
    separator: str = ""

    @property
    def size(self) -> int:
        return len(self.text)


def _find_cut(text: str, start: int, window_end: int, margin: int) -> int:
    """
    Finds the cut position for the window ``[start, window_end)``.

    Looks back from the window end at most ``margin`` characters. The left
    piece never grows beyond the window, so every chunk stays within limit.
    """
    lo = max(start, window_end - margin)
    # One extra character lets "X. " match when "." is the window's last char.
    region = text[lo:window_end + 1]

    for separator, keep in SEPARATORS:
        idx = region.rfind(separator)
        if idx == -1:
            continue
        cut = lo + idx + keep
        if start < cut <= window_end:
            return cut

    return window_end


def _raw_spans(text: str, limit: int, margin: int) -> List[Tuple[int, int]]:
    spans: List[Tuple[int, int]] = []
    start = 0
    length = len(text)

    while length - start > limit:
        cut = _find_cut(text, start, start + limit, margin)
        spans.append((start, cut))
        start = cut

    if start < length:
        spans.append((start, length))
    return spans


def split_text(text: str, limit: int, margin: int = DEFAULT_MARGIN) -> List[Chunk]:
    """
    Splits text into chunks of at most ``limit`` characters.

    Args:
        text: Source text of any length.
        limit: Maximum characters per chunk.
        margin: How far back from a window end to look for a boundary.

    Returns:
        Ordered chunks. Joining ``chunk.text + chunk.separator`` over all
        chunks reproduces ``text.strip()`` exactly.

    Raises:
        ValueError: If limit is not positive or margin is negative.
    """
    if limit <= 0:
        raise ValueError(f"Chunk limit must be positive, got {limit}")
    if margin < 0:
        raise ValueError(f"Chunk margin must not be negative, got {margin}")

    stripped = text.strip() if text else ""
    if not stripped:
        return []
    if len(stripped) <= limit:
        return [Chunk(index=0, text=stripped)]

    # Trimmed (start, end) spans, in absolute offsets of the original text.
    trimmed: List[Tuple[int, int]] = []
    for start, end in _raw_spans(text, limit, margin):
        piece = text[start:end]
        left = len(piece) - len(piece.lstrip())
        right = len(piece.rstrip())
        if right > left:
            trimmed.append((start + left, start + right))

    chunks: List[Chunk] = []
    for index, (start, end) in enumerate(trimmed):
        if index + 1 < len(trimmed):
            separator = text[end:trimmed[index + 1][0]]
        else:
            separator = ""
        chunks.append(Chunk(index=index, text=text[start:end], separator=separator))

    logger.debug(
        f"Split {len(text)} chars into {len(chunks)} chunks (limit={limit})"
    )
    return chunks
