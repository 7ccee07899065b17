"""
Service container.

Builds the job store, pipeline, queue and per-flow services from the active
provider registry and settings, and exposes them to routers through
``request.app.state.services``.
"""

from __future__ import annotations

# Standard library
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

# Third-party
from fastapi import Request

# Local application
from core.auth import SessionGate
from core.config import Settings
from core.providers import ProviderRegistry
from documents.pipeline import JobPipeline
from documents.queue import DocumentQueue
from documents.service import DocumentService
from documents.store import InMemoryJobStore, JobStore
from translation.retry import RetryingTranslator
from translation.scheduler import BatchScheduler
from translation.service import TextTranslationService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    registry: ProviderRegistry
    store: JobStore
    pipeline: JobPipeline
    queue: DocumentQueue
    documents: DocumentService
    text: TextTranslationService

    @property
    def session_gate(self) -> SessionGate:
        return self.registry.session_gate

    def sweep_expired(self, now: Optional[float] = None) -> List[str]:
        """
        Purges expired jobs and everything they hold.

        Swept jobs leave the store, the queue and the pipeline, and their
        uploads and translated documents are released. Uploads no live job
        references and idle interactive sessions expire by the same TTL.
        """
        now = time.time() if now is None else now
        ttl = self.settings.job_ttl_seconds
        jobs = {job.id: job for job in self.store.list()}
        removed = self.store.sweep_expired(now)
        if removed:
            self.queue.prune(removed)
            self.pipeline.forget(removed)
            for job_id in removed:
                self.pipeline.release(jobs[job_id])
            logger.info(f"Expiry sweep removed {len(removed)} jobs")

        referenced = {
            job.source_file_ref for job in self.store.list() if job.source_file_ref
        }
        self.registry.document_storage.sweep_uploads(now, ttl, keep=referenced)
        self.text.sweep_idle(now, ttl)
        return removed

    async def shutdown(self) -> None:
        await self.queue.stop()
        await self.text.cancel_background_jobs()


def _build_scheduler(
    registry: ProviderRegistry, settings: Settings, max_attempts: int
) -> BatchScheduler:
    translator = RetryingTranslator(
        registry.translation_client,
        max_attempts=max_attempts,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay,
        call_timeout=settings.request_timeout,
        fallback_provider=registry.fallback_provider,
    )
    return BatchScheduler(translator, concurrency=settings.concurrency)


def build_services(
    registry: ProviderRegistry,
    settings: Settings,
    store: Optional[JobStore] = None,
) -> ServiceContainer:
    store = store or InMemoryJobStore(ttl_seconds=settings.job_ttl_seconds)
    document_scheduler = _build_scheduler(registry, settings, settings.document_max_attempts)
    text_scheduler = _build_scheduler(registry, settings, settings.text_max_attempts)

    pipeline = JobPipeline(
        store,
        document_scheduler,
        text_scheduler=text_scheduler,
        storage=registry.document_storage,
        chunk_size=settings.chunk_size,
        chunk_margin=settings.chunk_margin,
    )
    queue = DocumentQueue(pipeline)
    documents = DocumentService(
        store=store,
        storage=registry.document_storage,
        pipeline=pipeline,
        queue=queue,
        max_file_size=settings.max_file_size,
    )
    text = TextTranslationService(
        text_scheduler,
        pipeline,
        chunk_size=settings.chunk_size,
        chunk_margin=settings.chunk_margin,
        max_text_length=settings.max_text_length,
    )
    return ServiceContainer(
        settings=settings,
        registry=registry,
        store=store,
        pipeline=pipeline,
        queue=queue,
        documents=documents,
        text=text,
    )


async def run_periodic_sweep(services: ServiceContainer, interval: float) -> None:
    """Background loop started by the app lifespan."""
    while True:
        await asyncio.sleep(interval)
        try:
            services.sweep_expired()
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Expiry sweep failed (non-fatal): {exc}", exc_info=True)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.services.documents


def get_text_service(request: Request) -> TextTranslationService:
    return request.app.state.services.text
