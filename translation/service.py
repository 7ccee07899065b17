"""
Text Translation Service

Two entry points:
- ``translate``: one text into one language, awaited by the caller. Each
  access session has its own request generation, so a new call supersedes
  only the same session's previous one; stale runs stop at their next window
  boundary and never publish.
- ``submit_job``: one text into many languages as a background job tracked
  in the shared job store.
"""

from __future__ import annotations

# Standard library
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

# Local application
from core.errors import AppError, ErrorCode, not_found, validation_error
from documents.models import TranslationJob
from documents.pipeline import JobPipeline
from documents.service import resolve_languages
from translation.assembler import assemble
from translation.chunker import DEFAULT_MARGIN, split_text
from translation.errors import TranslationSuperseded
from translation.scheduler import BatchProgress, BatchScheduler, RequestGeneration

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


@dataclass(frozen=True)
class TranslationSnapshot:
    """Latest published state of one session's interactive translation."""

    generation: int
    source_lang: str
    target_lang: str
    translated_text: str
    completed_chunks: int
    total_chunks: int
    fallback_chunks: int = 0
    done: bool = False


@dataclass(frozen=True)
class TextTranslationOutcome:
    translated_text: str
    source_lang: str
    target_lang: str
    chunks: int
    fallback_chunks: int


@dataclass
class SessionChannel:
    """Request generation and latest snapshot owned by one session."""

    generation: RequestGeneration = field(default_factory=RequestGeneration)
    latest: Optional[TranslationSnapshot] = None
    touched_at: float = 0.0


class TextTranslationService:
    """Interactive and background text translation."""

    def __init__(
        self,
        scheduler: BatchScheduler,
        pipeline: JobPipeline,
        *,
        chunk_size: int = 3000,
        chunk_margin: int = DEFAULT_MARGIN,
        max_text_length: int = 1_000_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.scheduler = scheduler
        self.pipeline = pipeline
        self.chunk_size = chunk_size
        self.chunk_margin = chunk_margin
        self.max_text_length = max_text_length
        self._clock = clock
        self._channels: Dict[str, SessionChannel] = {}
        self._background: Set[asyncio.Task] = set()

    def _validate_text(self, text: str) -> None:
        if not text or not text.strip():
            raise validation_error("Text must not be empty", field="text")
        if len(text) > self.max_text_length:
            raise validation_error(
                f"Text exceeds maximum length of {self.max_text_length} characters",
                field="text",
                length=len(text),
            )

    def _channel(self, session: str) -> SessionChannel:
        channel = self._channels.get(session)
        if channel is None:
            channel = SessionChannel(touched_at=self._clock())
            self._channels[session] = channel
        return channel

    def latest_for(self, session: str = DEFAULT_SESSION) -> Optional[TranslationSnapshot]:
        channel = self._channels.get(session)
        return channel.latest if channel is not None else None

    def _publish(self, channel: SessionChannel, snapshot: TranslationSnapshot) -> None:
        if channel.generation.is_current(snapshot.generation):
            channel.latest = snapshot
            channel.touched_at = self._clock()

    def sweep_idle(self, now: float, max_idle: float) -> int:
        """Drops sessions with no translate activity for ``max_idle`` seconds."""
        idle = [
            session
            for session, channel in self._channels.items()
            if now - channel.touched_at > max_idle
        ]
        for session in idle:
            del self._channels[session]
        return len(idle)

    async def translate(
        self,
        text: str,
        source_lang: Optional[str],
        target_lang: str,
        *,
        session: str = DEFAULT_SESSION,
    ) -> TextTranslationOutcome:
        """
        Translates ``text`` into ``target_lang`` and publishes intermediate
        results to the session's latest snapshot after every window.

        Raises:
            AppError: 422 on invalid input, 409 SUPERSEDED when the same
                session started a newer request before this one finished.
        """
        self._validate_text(text)
        source, targets = resolve_languages(source_lang, [target_lang])
        target = targets[0]

        channel = self._channel(session)
        channel.touched_at = self._clock()
        token = channel.generation.advance()
        chunks = split_text(text, self.chunk_size, self.chunk_margin)
        logger.info(
            f"Translate request {session}#{token}: {len(text)} chars, {len(chunks)} chunks -> {target}"
        )

        def on_progress(progress: BatchProgress) -> None:
            self._publish(
                channel,
                TranslationSnapshot(
                    generation=token,
                    source_lang=source,
                    target_lang=target,
                    translated_text=progress.partial_text,
                    completed_chunks=progress.completed,
                    total_chunks=progress.total,
                    fallback_chunks=progress.fallback_count,
                ),
            )

        try:
            batch = await self.scheduler.translate_all(
                chunks,
                source,
                target,
                on_progress=on_progress,
                generation=channel.generation,
                token=token,
            )
        except TranslationSuperseded as exc:
            logger.info(f"Translate request {session}#{token} discarded: {exc}")
            raise AppError(
                code=ErrorCode.SUPERSEDED,
                message="Superseded by a newer translation request",
                status_code=409,
                details={"generation": exc.generation, "current": exc.current},
            ) from exc

        translated = assemble(batch.texts, [chunk.separator for chunk in chunks])
        self._publish(
            channel,
            TranslationSnapshot(
                generation=token,
                source_lang=source,
                target_lang=target,
                translated_text=translated,
                completed_chunks=len(chunks),
                total_chunks=len(chunks),
                fallback_chunks=batch.fallback_count,
                done=True,
            ),
        )
        if batch.fallback_count:
            logger.warning(
                f"Translate request {session}#{token}: {batch.fallback_count}/{len(chunks)} chunks used fallback text"
            )
        return TextTranslationOutcome(
            translated_text=translated,
            source_lang=source,
            target_lang=target,
            chunks=len(chunks),
            fallback_chunks=batch.fallback_count,
        )

    def submit_job(
        self, text: str, source_lang: Optional[str], target_langs: List[str]
    ) -> TranslationJob:
        """Creates a multi-language text job and runs it in the background."""
        self._validate_text(text)
        source, targets = resolve_languages(source_lang, target_langs)
        job = TranslationJob(
            target_langs=targets,
            source_lang=source,
            source_text=text,
            kind="text",
        )
        self.pipeline.register(job)

        task = asyncio.create_task(self.pipeline.run_text_job(job))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        logger.info(f"Text job {job.id} submitted ({len(targets)} languages)")
        return job

    def get_job(self, task_id: str) -> TranslationJob:
        job = self.pipeline.store.get(task_id)
        if job is None or job.kind != "text":
            raise not_found("Task not found", task_id=task_id)
        return job

    async def cancel_background_jobs(self) -> None:
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
