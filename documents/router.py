"""
Documents Router

API endpoints for document upload, queued multi-language translation,
status polling, downloads and queue control.
"""

# Standard library
import logging

# Third-party
from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

# Local application
from core.auth import require_allowed_session
from core.services import get_document_service
from documents.schemas import (
    JobStatusResponse,
    ProcessDocumentRequest,
    QueueClearResponse,
    QueueResponse,
    TaskAcceptedResponse,
    UploadResponse,
)
from documents.service import DocumentService

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    _session: str = Depends(require_allowed_session),
    service: DocumentService = Depends(get_document_service),
) -> UploadResponse:
    """
    Stores an uploaded document for later processing.

    Raises:
        AppError: 400 for unsupported or empty files, 413 above MAX_FILE_SIZE.
    """
    content = await file.read()
    file_name = file.filename or "document.txt"
    logger.info(f"Upload received: {file_name} ({len(content)} bytes)")

    stored = await service.upload(
        content=content, file_name=file_name, content_type=file.content_type
    )
    return UploadResponse(
        file_id=stored.file_id,
        file_name=stored.file_name,
        file_size=stored.size,
        content_type=stored.content_type,
    )


@router.post("/process", response_model=TaskAcceptedResponse, status_code=202)
async def process_document(
    data: ProcessDocumentRequest,
    _session: str = Depends(require_allowed_session),
    service: DocumentService = Depends(get_document_service),
) -> TaskAcceptedResponse:
    """
    Queues a stored upload for translation into every requested language.

    The queue starts automatically unless it has been paused.
    """
    item = service.submit(
        file_id=data.file_id,
        source_lang=data.source_lang,
        target_langs=data.target_langs,
        file_name=data.file_name,
        file_size=data.file_size,
    )
    return TaskAcceptedResponse(
        task_id=item.id,
        status=item.status,
        queue_position=service.queue_position(item.id),
    )


@router.get("/status", response_model=JobStatusResponse)
async def get_document_status(
    task_id: str = Query(..., min_length=1),
    service: DocumentService = Depends(get_document_service),
) -> JobStatusResponse:
    """Returns the current snapshot of a document job."""
    return JobStatusResponse(**service.status(task_id))


@router.get("/download")
async def download_document(
    task_id: str = Query(..., min_length=1),
    lang_code: str = Query(..., min_length=2),
    service: DocumentService = Depends(get_document_service),
) -> Response:
    """
    Downloads one translated language as a text file.

    The ASCII ``filename`` and the RFC 5987 ``filename*`` parameters of
    Content-Disposition carry the sanitized and original names.
    """
    artifact = service.download(task_id, lang_code)
    return Response(
        content=artifact.body,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": artifact.content_disposition},
    )


@router.get("/queue", response_model=QueueResponse)
async def get_queue(
    service: DocumentService = Depends(get_document_service),
) -> QueueResponse:
    return QueueResponse(**service.queue_snapshot())


@router.post("/queue/pause", response_model=QueueResponse)
async def pause_queue(
    _session: str = Depends(require_allowed_session),
    service: DocumentService = Depends(get_document_service),
) -> QueueResponse:
    """The document in progress finishes; no further document starts."""
    return QueueResponse(**service.pause_queue())


@router.post("/queue/resume", response_model=QueueResponse)
async def resume_queue(
    _session: str = Depends(require_allowed_session),
    service: DocumentService = Depends(get_document_service),
) -> QueueResponse:
    return QueueResponse(**service.resume_queue())


@router.delete("/queue", response_model=QueueClearResponse)
async def clear_queue(
    _session: str = Depends(require_allowed_session),
    service: DocumentService = Depends(get_document_service),
) -> QueueClearResponse:
    """
    Removes every queued document and its job.

    Raises:
        AppError: 409 while the queue is running.
    """
    return QueueClearResponse(removed=service.clear_queue())
