"""
Job Pipeline

Executes one TranslationJob from pending to a terminal state. Target
languages run one after another; each language run uses the scheduler's own
concurrency window, so outbound pressure stays bounded no matter how many
languages a job requests.

Failure policy:
- A failure inside one language (every chunk fell back, materialization
  failed, unexpected fault) is recorded on that language and the loop moves
  on. The job still completes.
- A failure outside the loop (text extraction, a programming fault) puts the
  whole job into ``error`` and marks every unfinished language as failed.
"""

from __future__ import annotations

# Standard library
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

# Local application
from documents.models import LanguageResult, TranslationJob
from documents.storage import DocumentStorage
from documents.store import JobStore
from translation.assembler import assemble
from translation.chunker import DEFAULT_MARGIN, Chunk, split_text
from translation.errors import TranslationSuperseded, UpstreamError
from translation.scheduler import BatchProgress, BatchScheduler, RequestGeneration

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 3000


@dataclass(frozen=True)
class ProgressShares:
    """Percent of overall progress owned by each phase."""

    extraction: float
    translation: float


# 10% extraction, 80% spread over languages, the rest is finalization.
DOCUMENT_SHARES = ProgressShares(extraction=10.0, translation=80.0)
TEXT_SHARES = ProgressShares(extraction=0.0, translation=100.0)

ProgressListener = Callable[[TranslationJob, str, BatchProgress], None]


class JobPipeline:
    """Runs text and document jobs and signals their completion."""

    def __init__(
        self,
        store: JobStore,
        scheduler: BatchScheduler,
        *,
        text_scheduler: Optional[BatchScheduler] = None,
        storage: Optional[DocumentStorage] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_margin: int = DEFAULT_MARGIN,
        on_progress: Optional[ProgressListener] = None,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.text_scheduler = text_scheduler or scheduler
        self.storage = storage
        self.chunk_size = chunk_size
        self.chunk_margin = chunk_margin
        self.on_progress = on_progress
        self._done: Dict[str, asyncio.Future] = {}

    # ------------------------------------------------------------------
    # Completion signalling
    # ------------------------------------------------------------------

    def register(self, job: TranslationJob) -> TranslationJob:
        """Stores a new job and prepares its completion future."""
        self.store.put(job)
        self._future_for(job.id)
        return job

    def _future_for(self, job_id: str) -> asyncio.Future:
        future = self._done.get(job_id)
        if future is None:
            future = asyncio.get_running_loop().create_future()
            self._done[job_id] = future
        return future

    def _resolve(self, job: TranslationJob) -> None:
        # Forgotten jobs (swept or cleared mid-run) have no future left.
        future = self._done.pop(job.id, None)
        if future is not None and not future.done():
            future.set_result(job)

    async def wait_for(
        self, job_id: str, timeout: Optional[float] = None
    ) -> TranslationJob:
        """
        Waits until a job reaches completed or error.

        Raises:
            KeyError: Unknown job id.
            asyncio.TimeoutError: If ``timeout`` elapses first.
        """
        job = self.store.get(job_id)
        if job is None:
            raise KeyError(job_id)
        if job.is_terminal:
            return job
        future = self._future_for(job_id)
        return await asyncio.wait_for(asyncio.shield(future), timeout=timeout)

    def forget(self, job_ids: List[str]) -> None:
        for job_id in job_ids:
            future = self._done.pop(job_id, None)
            if future is not None and not future.done():
                future.cancel()

    def release(self, job: TranslationJob) -> None:
        """Discards the upload and translated documents a job holds in storage."""
        if self.storage is None:
            return
        if job.source_file_ref:
            self.storage.discard_upload(job.source_file_ref)
        for result in job.ordered_results():
            if result.document_id:
                self.storage.discard_document(result.document_id)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_document_job(self, job: TranslationJob) -> TranslationJob:
        """Extracts, translates and materializes every requested language."""
        if self.storage is None:
            raise RuntimeError("Document jobs need a DocumentStorage")

        try:
            job.mark_processing()
            logger.info(
                f"Processing document job {job.id}: {job.file_name} -> {', '.join(job.target_langs)}"
            )
            text = await self.storage.extract(job.source_file_ref)
            job.advance_progress(DOCUMENT_SHARES.extraction)
            logger.info(f"Job {job.id}: extracted {len(text)} chars")

            await self._translate_languages(job, text, DOCUMENT_SHARES, materialize=True)
            job.mark_completed()
            self._log_summary(job)
        except asyncio.CancelledError:
            self._fail(job, "Job cancelled")
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Document job {job.id} failed: {exc}", exc_info=True)
            self._fail(job, str(exc) or type(exc).__name__)
        finally:
            self._resolve(job)
        return job

    async def run_text_job(
        self,
        job: TranslationJob,
        *,
        generation: Optional[RequestGeneration] = None,
        token: Optional[int] = None,
    ) -> TranslationJob:
        """Translates ``job.source_text`` into every requested language."""
        try:
            job.mark_processing()
            logger.info(
                f"Processing text job {job.id}: {len(job.source_text or '')} chars -> {', '.join(job.target_langs)}"
            )
            await self._translate_languages(
                job,
                job.source_text or "",
                TEXT_SHARES,
                materialize=False,
                generation=generation,
                token=token,
            )
            job.mark_completed()
            self._log_summary(job)
        except TranslationSuperseded as exc:
            logger.info(f"Text job {job.id} superseded: {exc}")
            self._fail(job, "Superseded by a newer request")
        except asyncio.CancelledError:
            self._fail(job, "Job cancelled")
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Text job {job.id} failed: {exc}", exc_info=True)
            self._fail(job, str(exc) or type(exc).__name__)
        finally:
            self._resolve(job)
        return job

    def _fail(self, job: TranslationJob, message: str) -> None:
        if not job.is_terminal:
            job.mark_error(message)

    async def _translate_languages(
        self,
        job: TranslationJob,
        text: str,
        shares: ProgressShares,
        *,
        materialize: bool,
        generation: Optional[RequestGeneration] = None,
        token: Optional[int] = None,
    ) -> None:
        chunks = split_text(text, self.chunk_size, self.chunk_margin)
        scheduler = self.scheduler if materialize else self.text_scheduler
        total = len(job.target_langs)
        logger.info(f"Job {job.id}: {len(chunks)} chunks per language, {total} languages")

        for done, lang in enumerate(job.target_langs):
            if generation is not None and token is not None:
                generation.ensure_current(token)

            def on_window(progress: BatchProgress, done: int = done, lang: str = lang) -> None:
                job.advance_progress(
                    shares.extraction
                    + shares.translation * (done + progress.fraction) / total
                )
                if self.on_progress is not None:
                    self.on_progress(job, lang, progress)

            try:
                result = await self._translate_language(
                    job,
                    lang,
                    chunks,
                    scheduler,
                    on_window,
                    materialize=materialize,
                    generation=generation,
                    token=token,
                )
                logger.info(f"Job {job.id}: {lang} completed")
            except TranslationSuperseded:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"Job {job.id}: {lang} failed: {exc}")
                result = LanguageResult(
                    lang_code=lang,
                    status="error",
                    error=str(exc) or type(exc).__name__,
                    total_chunks=len(chunks),
                )

            job.record_result(result)
            job.advance_progress(shares.extraction + shares.translation * (done + 1) / total)

    async def _translate_language(
        self,
        job: TranslationJob,
        lang: str,
        chunks: List[Chunk],
        scheduler: BatchScheduler,
        on_window: Callable[[BatchProgress], None],
        *,
        materialize: bool,
        generation: Optional[RequestGeneration],
        token: Optional[int],
    ) -> LanguageResult:
        batch = await scheduler.translate_all(
            chunks,
            job.source_lang,
            lang,
            on_progress=on_window,
            generation=generation,
            token=token,
        )

        if batch.all_failed:
            raise UpstreamError(
                f"All {len(chunks)} chunks failed for {lang}: {batch.last_error()}",
                retryable=False,
            )

        translated = assemble(batch.texts, [chunk.separator for chunk in chunks])
        note = None
        if batch.fallback_count:
            note = (
                f"Fallback text used for {batch.fallback_count} of {len(chunks)} chunks"
            )

        document_id = None
        if materialize:
            document_id = await self.storage.materialize(
                translated, job.file_name or "document.txt", lang
            )

        return LanguageResult(
            lang_code=lang,
            status="completed",
            translated_text=translated,
            document_id=document_id,
            note=note,
            total_chunks=len(chunks),
            fallback_chunks=batch.fallback_count,
        )

    def _log_summary(self, job: TranslationJob) -> None:
        results = job.ordered_results()
        succeeded = sum(1 for result in results if result.status == "completed")
        failed = len(results) - succeeded
        logger.info(
            f"Job {job.id} finished: {succeeded}/{len(results)} languages translated, {failed} failed"
        )
