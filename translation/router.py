"""
Translation Router

API endpoints for interactive text translation and multi-language text jobs.
"""

# Standard library
import logging

# Third-party
from fastapi import APIRouter, Depends

# Local application
from core.auth import require_allowed_session
from core.errors import not_found
from core.services import get_text_service
from documents.schemas import JobStatusResponse, TaskAcceptedResponse
from translation.schemas import (
    LatestTranslationResponse,
    TextJobRequest,
    TranslateRequest,
    TranslateResponse,
)
from translation.service import TextTranslationService

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TranslateResponse)
async def translate_text(
    data: TranslateRequest,
    session: str = Depends(require_allowed_session),
    service: TextTranslationService = Depends(get_text_service),
) -> TranslateResponse:
    """
    Translates text of any size into one target language.

    Large inputs are split into chunks and translated in bounded windows.
    A newer request from the same session supersedes this one; the older
    caller then receives 409. Other sessions are unaffected.

    Raises:
        AppError: 422 on invalid input, 409 SUPERSEDED.
    """
    outcome = await service.translate(
        data.text, data.source_lang, data.target_lang, session=session
    )
    return TranslateResponse(
        translated_text=outcome.translated_text,
        source_lang=outcome.source_lang,
        target_lang=outcome.target_lang,
        chunks=outcome.chunks,
        fallback_chunks=outcome.fallback_chunks,
    )


@router.get("/latest", response_model=LatestTranslationResponse)
async def get_latest_translation(
    session: str = Depends(require_allowed_session),
    service: TextTranslationService = Depends(get_text_service),
) -> LatestTranslationResponse:
    """Returns the caller's latest published (possibly partial) translation."""
    snapshot = service.latest_for(session)
    if snapshot is None:
        raise not_found("No translation has been published yet")
    return LatestTranslationResponse(**snapshot.__dict__)


@router.post("/jobs", response_model=TaskAcceptedResponse, status_code=202)
async def submit_text_job(
    data: TextJobRequest,
    _session: str = Depends(require_allowed_session),
    service: TextTranslationService = Depends(get_text_service),
) -> TaskAcceptedResponse:
    """Starts a background job translating text into several languages."""
    job = service.submit_job(data.text, data.source_lang, data.target_langs)
    return TaskAcceptedResponse(task_id=job.id, status=job.status)


@router.get("/jobs/{task_id}", response_model=JobStatusResponse)
async def get_text_job(
    task_id: str,
    service: TextTranslationService = Depends(get_text_service),
) -> JobStatusResponse:
    """Returns a snapshot of a text job."""
    return JobStatusResponse(**service.get_job(task_id).snapshot())
