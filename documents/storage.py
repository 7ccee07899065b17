"""
Upload storage, text extraction and document materialization.

Uploaded files are treated as opaque text containers: extraction decodes the
stored bytes as UTF-8. Translated documents are kept as text keyed by a
generated document id.
"""

from __future__ import annotations

# Standard library
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, List, Optional, Protocol, runtime_checkable

# Local application
from translation.errors import ExtractionError, MaterializationError

logger = logging.getLogger(__name__)

SUPPORTED_TYPES: Dict[str, str] = {
    "text/plain": "txt",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/rtf": "rtf",
    "text/rtf": "rtf",
}
SUPPORTED_EXTENSIONS = frozenset(f".{ext}" for ext in SUPPORTED_TYPES.values())

MAX_FILE_SIZE = 10 * 1024 * 1024


class UnsupportedUpload(ValueError):
    """Upload rejected by type or size checks."""

    def __init__(self, message: str, *, too_large: bool = False) -> None:
        super().__init__(message)
        self.too_large = too_large


def validate_upload(
    file_name: str,
    content_type: Optional[str],
    size: int,
    max_size: int = MAX_FILE_SIZE,
) -> None:
    """
    Checks an upload against the supported types and size limit.

    Raises:
        UnsupportedUpload: With a user-facing reason.
    """
    if size <= 0:
        raise UnsupportedUpload("Uploaded file is empty")
    if size > max_size:
        raise UnsupportedUpload(
            f"File exceeds maximum size of {max_size // (1024 * 1024)} MB",
            too_large=True,
        )

    _, ext = os.path.splitext(file_name or "")
    type_ok = content_type in SUPPORTED_TYPES
    ext_ok = ext.lower() in SUPPORTED_EXTENSIONS
    if not (type_ok or ext_ok):
        raise UnsupportedUpload(
            f"Unsupported file type: {content_type or ext or 'unknown'}"
        )


@dataclass(frozen=True)
class StoredFile:
    file_id: str
    file_name: str
    content_type: Optional[str]
    content: bytes
    stored_at: float = field(default_factory=time.time)

    @property
    def size(self) -> int:
        return len(self.content)


@runtime_checkable
class DocumentStorage(Protocol):
    """Upload, extraction and materialization collaborator."""

    async def save_upload(
        self, content: bytes, file_name: str, content_type: Optional[str]
    ) -> StoredFile:
        """Store raw upload bytes and return the stored record."""

    def get_upload(self, file_id: str) -> Optional[StoredFile]:
        """Return a stored upload or None."""

    async def extract(self, file_id: str) -> str:
        """Return the text of an upload. Raises ExtractionError."""

    async def materialize(self, text: str, original_name: str, lang_code: str) -> str:
        """Store a translated document and return its id. Raises MaterializationError."""

    def load_document(self, document_id: str) -> Optional[str]:
        """Return a materialized document or None."""

    def discard_upload(self, file_id: str) -> bool:
        """Release an upload; True when it existed."""

    def discard_document(self, document_id: str) -> bool:
        """Release a materialized document; True when it existed."""

    def sweep_uploads(
        self, now: float, max_age: float, keep: Collection[str] = ()
    ) -> List[str]:
        """Release uploads older than ``max_age`` not listed in ``keep``."""


class InMemoryDocumentStorage:
    """Process-local storage for uploads and translated documents."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._uploads: Dict[str, StoredFile] = {}
        self._documents: Dict[str, str] = {}

    async def save_upload(
        self, content: bytes, file_name: str, content_type: Optional[str]
    ) -> StoredFile:
        file_id = f"file_{uuid.uuid4().hex[:16]}"
        stored = StoredFile(
            file_id=file_id,
            file_name=file_name,
            content_type=content_type,
            content=content,
            stored_at=self._clock(),
        )
        self._uploads[file_id] = stored
        logger.info(f"Stored upload {file_id} ({file_name}, {stored.size} bytes)")
        return stored

    def get_upload(self, file_id: str) -> Optional[StoredFile]:
        return self._uploads.get(file_id)

    async def extract(self, file_id: str) -> str:
        stored = self._uploads.get(file_id)
        if stored is None:
            raise ExtractionError(f"Unknown file id: {file_id}")

        text = stored.content.decode("utf-8", errors="replace").strip()
        if not text:
            raise ExtractionError(f"No text could be extracted from {stored.file_name}")

        logger.info(f"Extracted {len(text)} chars from {file_id}")
        return text

    async def materialize(self, text: str, original_name: str, lang_code: str) -> str:
        if not text:
            raise MaterializationError(
                f"Nothing to write for {original_name} ({lang_code})"
            )
        document_id = f"doc_{lang_code.upper()}_{uuid.uuid4().hex[:12]}"
        self._documents[document_id] = text
        logger.info(f"Created document {document_id} for language {lang_code}")
        return document_id

    def load_document(self, document_id: str) -> Optional[str]:
        return self._documents.get(document_id)

    def discard_upload(self, file_id: str) -> bool:
        return self._uploads.pop(file_id, None) is not None

    def discard_document(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    def sweep_uploads(
        self, now: float, max_age: float, keep: Collection[str] = ()
    ) -> List[str]:
        expired = [
            file_id
            for file_id, stored in self._uploads.items()
            if file_id not in keep and now - stored.stored_at > max_age
        ]
        for file_id in expired:
            del self._uploads[file_id]
        if expired:
            logger.info(f"Released {len(expired)} unreferenced uploads")
        return expired
