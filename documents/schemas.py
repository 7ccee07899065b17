"""
Document Translation Schemas

Pydantic models for the upload, processing, status and queue endpoints.
Job status models are shared with the text job endpoints.
"""

# Standard library
from typing import List, Literal, Optional

# Third-party
from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """
    Response model for a stored upload.

    Attributes:
        file_id: Reference to pass to /documents/process.
        file_name: Original file name.
        file_size: Size in bytes.
        content_type: MIME type reported by the client.
    """
    file_id: str
    file_name: str
    file_size: int
    content_type: Optional[str] = None


class ProcessDocumentRequest(BaseModel):
    """
    Request model for starting a document translation.

    Attributes:
        file_id: Upload reference returned by /documents/upload.
        source_lang: Source language code or AUTO.
        target_langs: Ordered target language codes.
        file_name: Display name used for the download artifact.
        file_size: Original file size in bytes.
    """
    file_id: str = Field(..., min_length=1)
    source_lang: str = Field(default="AUTO")
    target_langs: List[str] = Field(..., min_length=1)
    file_name: Optional[str] = Field(default=None, max_length=255)
    file_size: int = Field(default=0, ge=0)


class TaskAcceptedResponse(BaseModel):
    """Returned when a job has been accepted for background processing."""
    task_id: str
    status: Literal["pending", "processing", "completed", "error"]
    queue_position: Optional[int] = None


class LanguageResultResponse(BaseModel):
    lang_code: str
    status: Literal["completed", "error"]
    translated_text: Optional[str] = None
    document_id: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None
    total_chunks: int = 0
    fallback_chunks: int = 0


class JobStatusResponse(BaseModel):
    """
    Snapshot of one translation job.

    Attributes:
        id: Task id.
        kind: "text" or "document".
        status: pending, processing, completed or error.
        progress: 0-100, never decreases while processing.
        results: One entry per resolved target language, in request order.
        error: Job-level failure message.
    """
    id: str
    kind: Literal["text", "document"]
    status: Literal["pending", "processing", "completed", "error"]
    progress: float
    source_lang: str
    target_langs: List[str]
    file_name: Optional[str] = None
    file_size: int = 0
    created_at: float
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    results: List[LanguageResultResponse] = Field(default_factory=list)
    error: Optional[str] = None


class QueueItemResponse(BaseModel):
    id: str
    file_name: str
    file_size: int
    position: int
    status: Literal["pending", "processing", "completed", "error"]
    progress: float
    enqueued_at: float


class QueueResponse(BaseModel):
    running: bool
    paused: bool
    current_task_id: Optional[str] = None
    pending: int
    items: List[QueueItemResponse] = Field(default_factory=list)


class QueueClearResponse(BaseModel):
    removed: int
