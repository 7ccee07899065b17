"""Service layer for document translation APIs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from core.errors import AppError, ErrorCode, not_found, validation_error
from documents.models import DocumentQueueItem, TranslationJob
from documents.pipeline import JobPipeline
from documents.queue import DocumentQueue
from documents.storage import (
    DocumentStorage,
    MAX_FILE_SIZE,
    StoredFile,
    UnsupportedUpload,
    validate_upload,
)
from documents.store import JobStore
from translation.assembler import (
    build_content_disposition,
    build_download_content,
    generate_file_name,
)
from translation.languages import (
    AUTO_DETECT,
    is_supported,
    normalize_code,
    normalize_source_lang,
    normalize_target_langs,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadArtifact:
    file_name: str
    content: str
    content_disposition: str

    @property
    def body(self) -> bytes:
        return self.content.encode("utf-8")


def resolve_languages(source_lang: Optional[str], target_langs: List[str]) -> tuple[str, List[str]]:
    """Normalizes language codes or raises a 422 AppError."""
    source = normalize_source_lang(source_lang)
    if source != AUTO_DETECT and not is_supported(source):
        raise validation_error(f"Unsupported source language: {source_lang}", field="source_lang")
    try:
        targets = normalize_target_langs(target_langs)
    except ValueError as exc:
        raise validation_error(str(exc), field="target_langs") from exc
    return source, targets


class DocumentService:
    """Upload, submission, status and download for document jobs."""

    def __init__(
        self,
        *,
        store: JobStore,
        storage: DocumentStorage,
        pipeline: JobPipeline,
        queue: DocumentQueue,
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        self.store = store
        self.storage = storage
        self.pipeline = pipeline
        self.queue = queue
        self.max_file_size = max_file_size

    async def upload(
        self, *, content: bytes, file_name: str, content_type: Optional[str]
    ) -> StoredFile:
        try:
            validate_upload(file_name, content_type, len(content), self.max_file_size)
        except UnsupportedUpload as exc:
            if exc.too_large:
                raise AppError(
                    code=ErrorCode.PAYLOAD_TOO_LARGE,
                    message=str(exc),
                    status_code=413,
                    details={"max_size": self.max_file_size},
                ) from exc
            raise AppError(
                code=ErrorCode.BAD_REQUEST,
                message=str(exc),
                status_code=400,
                details={"file_name": file_name, "content_type": content_type},
            ) from exc
        return await self.storage.save_upload(content, file_name, content_type)

    def submit(
        self,
        *,
        file_id: str,
        source_lang: Optional[str],
        target_langs: List[str],
        file_name: Optional[str] = None,
        file_size: int = 0,
    ) -> DocumentQueueItem:
        """Validates a request, enqueues the job and starts the queue."""
        source, targets = resolve_languages(source_lang, target_langs)

        stored = self.storage.get_upload(file_id)
        if stored is None:
            raise not_found("Uploaded file not found", file_id=file_id)

        name = file_name or stored.file_name or "document.txt"
        size = file_size or stored.size
        job = TranslationJob(
            target_langs=targets,
            source_lang=source,
            source_file_ref=file_id,
            kind="document",
            file_name=name,
            file_size=size,
        )
        item = self.queue.enqueue(job, file_name=name, file_size=size)
        if self.queue.start() is None and self.queue.is_paused:
            logger.info(f"Queue paused; {job.id} will wait for resume")
        return item

    def get_job(self, task_id: str) -> TranslationJob:
        job = self.store.get(task_id)
        if job is None:
            raise not_found("Task not found", task_id=task_id)
        return job

    def status(self, task_id: str) -> Dict[str, Any]:
        return self.get_job(task_id).snapshot()

    def queue_position(self, task_id: str) -> Optional[int]:
        for position, item in enumerate(self.queue.items(), 1):
            if item.id == task_id:
                return position
        return None

    def download(self, task_id: str, lang_code: str) -> DownloadArtifact:
        """
        Builds the per-language download.

        Raises:
            AppError: 404 for unknown task, language or failed translation;
                409 while the language is not translated yet.
        """
        job = self.get_job(task_id)
        lang = normalize_code(lang_code or "")
        if lang not in job.target_langs:
            raise not_found("Language not requested for this task", task_id=task_id, lang_code=lang_code)

        result = job.results.get(lang)
        if result is None:
            raise AppError(
                code=ErrorCode.CONFLICT,
                message="Translation is not ready yet",
                status_code=409,
                details={"task_id": task_id, "status": job.status, "progress": job.progress},
            )
        if result.status != "completed":
            raise not_found(
                "Translation failed for this language",
                task_id=task_id,
                lang_code=lang,
                error=result.error,
            )

        text = None
        if result.document_id:
            text = self.storage.load_document(result.document_id)
        if text is None:
            text = result.translated_text or ""

        original = job.file_name or "document.txt"
        content = build_download_content(
            text, original_file_name=original, lang_code=lang, job_id=job.id
        )
        file_name = generate_file_name(original, lang)
        logger.info(f"Serving download {file_name} for {task_id}")
        return DownloadArtifact(
            file_name=file_name,
            content=content,
            content_disposition=build_content_disposition(file_name),
        )

    def queue_snapshot(self) -> Dict[str, Any]:
        return self.queue.snapshot()

    def pause_queue(self) -> Dict[str, Any]:
        self.queue.pause()
        return self.queue.snapshot()

    def resume_queue(self) -> Dict[str, Any]:
        self.queue.resume()
        return self.queue.snapshot()

    def clear_queue(self) -> int:
        return self.queue.clear()
