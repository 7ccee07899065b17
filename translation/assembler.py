"""
Result Assembler

Joins translated chunks back into one string and builds the downloadable
artifact for the document flow: metadata footer, per-language file name and
an HTTP Content-Disposition value that survives non-ASCII names.
"""

from __future__ import annotations

# Standard library
import re
from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import quote

# Local application
from translation.languages import get_language_name

DEFAULT_JOINER = " "
MAX_FILE_NAME_LENGTH = 200
DEFAULT_EXTENSION = ".txt"

_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]")
_FORBIDDEN_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def assemble(
    translated: Sequence[str],
    separators: Optional[Sequence[str]] = None,
) -> str:
    """
    Joins translated chunks in order.

    Args:
        translated: Chunk translations in chunk order.
        separators: Whitespace consumed after each source chunk. When given,
            ``separators[i]`` is placed between chunk ``i`` and ``i + 1`` so
            paragraph and line breaks survive. When omitted, a single space
            is used.
    """
    if not translated:
        return ""
    if separators is None:
        return DEFAULT_JOINER.join(translated)

    parts: list[str] = []
    last = len(translated) - 1
    for i, text in enumerate(translated):
        parts.append(text)
        if i < last:
            parts.append(separators[i] if i < len(separators) else DEFAULT_JOINER)
    return "".join(parts)


def generate_file_name(original_file_name: str, lang_code: str) -> str:
    """Inserts ``_<LANG>`` before the extension: ``report.txt`` -> ``report_DE.txt``."""
    name = original_file_name or ""
    dot = name.rfind(".")
    if dot > 0:
        stem, extension = name[:dot], name[dot:]
    elif dot == 0:
        stem, extension = "", name
    else:
        stem, extension = name, DEFAULT_EXTENSION
    stem = stem or "translated_document"
    return f"{stem}_{lang_code.upper()}{extension}"


def sanitize_file_name(file_name: str) -> str:
    """
    Restricts a file name to header-safe ASCII.

    Non-ASCII and filesystem-forbidden characters and whitespace become
    underscores, runs of underscores collapse, edges are trimmed and the
    result is capped at 200 characters. Empty results become "document".
    """
    sanitized = _NON_PRINTABLE_ASCII.sub("_", file_name or "")
    sanitized = _FORBIDDEN_CHARS.sub("_", sanitized)
    sanitized = _WHITESPACE.sub("_", sanitized)
    sanitized = _REPEATED_UNDERSCORES.sub("_", sanitized)
    sanitized = sanitized.strip("_")[:MAX_FILE_NAME_LENGTH]
    return sanitized or "document"


def build_content_disposition(file_name: str) -> str:
    """
    Attachment header with an ASCII ``filename`` and an RFC 5987
    ``filename*`` carrying the original Unicode name.
    """
    ascii_name = sanitize_file_name(file_name)
    encoded = quote(file_name or ascii_name, safe="")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{encoded}"


def build_download_content(
    translated_text: str,
    *,
    original_file_name: str,
    lang_code: str,
    job_id: str,
    now: Optional[datetime] = None,
) -> str:
    """Appends the translation metadata footer to the translated text."""
    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S UTC")
    language = get_language_name(lang_code)
    return (
        f"{translated_text}\n"
        "\n"
        "---\n"
        "Translation details:\n"
        f"Source file: {original_file_name or 'document.txt'}\n"
        f"Target language: {language} ({lang_code.upper()})\n"
        f"Translated at: {timestamp}\n"
        f"Job ID: {job_id}\n"
        "---"
    )
