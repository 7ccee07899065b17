"""
Document Queue

Ordered list of document jobs consumed strictly one at a time. Only one item
is ever processing, so total outbound calls stay at the scheduler's window
size regardless of queue depth.
"""

from __future__ import annotations

# Standard library
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

# Local application
from core.errors import AppError, ErrorCode
from documents.models import DocumentQueueItem, TranslationJob
from documents.pipeline import JobPipeline

logger = logging.getLogger(__name__)


class DocumentQueue:
    """Serial consumer of document jobs with pause/resume."""

    def __init__(self, pipeline: JobPipeline) -> None:
        self.pipeline = pipeline
        self._items: List[DocumentQueueItem] = []
        self._paused = False
        self._running = False
        self._current: Optional[DocumentQueueItem] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_running(self) -> bool:
        return self._running or (self._task is not None and not self._task.done())

    @property
    def current(self) -> Optional[DocumentQueueItem]:
        return self._current

    def __len__(self) -> int:
        return len(self._items)

    def items(self) -> List[DocumentQueueItem]:
        return list(self._items)

    def get(self, job_id: str) -> Optional[DocumentQueueItem]:
        for item in self._items:
            if item.id == job_id:
                return item
        return None

    def enqueue(
        self, job: TranslationJob, *, file_name: str, file_size: int = 0
    ) -> DocumentQueueItem:
        """Registers the job with the pipeline and appends it to the queue."""
        self.pipeline.register(job)
        item = DocumentQueueItem(job=job, file_name=file_name, file_size=file_size)
        self._items.append(item)
        logger.info(f"Queued {job.id} ({file_name}) at position {len(self._items)}")
        return item

    def _next_pending(self) -> Optional[DocumentQueueItem]:
        for item in self._items:
            if item.status == "pending":
                return item
        return None

    async def run(self) -> int:
        """
        Processes pending items in order until none is left or the queue is
        paused.

        Returns:
            Number of items processed by this run.
        """
        if self._running:
            raise RuntimeError("Queue is already running")

        self._running = True
        processed = 0
        logger.info(f"Queue run started ({len(self._items)} items)")
        try:
            while not self._paused:
                item = self._next_pending()
                if item is None:
                    break
                self._current = item
                await self.pipeline.run_document_job(item.job)
                processed += 1
        finally:
            self._running = False
            self._current = None

        if self._paused:
            logger.info(f"Queue paused after {processed} items")
        else:
            logger.info(f"Queue drained, processed {processed} items")
        return processed

    def start(self) -> Optional[asyncio.Task]:
        """Spawns ``run()`` in the background unless paused, busy or empty."""
        if self._paused or self.is_running or self._next_pending() is None:
            return None
        self._task = asyncio.create_task(self.run())
        return self._task

    def pause(self) -> None:
        """The item in progress finishes; no new item starts."""
        self._paused = True
        logger.info("Queue pause requested")

    def resume(self) -> Optional[asyncio.Task]:
        self._paused = False
        logger.info("Queue resumed")
        return self.start()

    def clear(self) -> int:
        """
        Removes every item, its job and the files the job holds.

        Raises:
            AppError: 409 while the queue is running.
        """
        if self.is_running:
            raise AppError(
                code=ErrorCode.CONFLICT,
                message="Queue cannot be cleared while it is running",
                status_code=409,
            )
        job_ids = [item.id for item in self._items]
        for item in self._items:
            self.pipeline.release(item.job)
            self.pipeline.store.delete(item.id)
        self.pipeline.forget(job_ids)
        self._items.clear()
        logger.info(f"Queue cleared ({len(job_ids)} items removed)")
        return len(job_ids)

    def prune(self, job_ids: Iterable[str]) -> int:
        """Drops items whose jobs were removed elsewhere (expiry sweep)."""
        doomed = set(job_ids)
        before = len(self._items)
        self._items = [
            item
            for item in self._items
            if item.id not in doomed or item is self._current
        ]
        return before - len(self._items)

    async def stop(self) -> None:
        """Cancels the background run, if any."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def snapshot(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "paused": self._paused,
            "current_task_id": self._current.id if self._current else None,
            "pending": sum(1 for item in self._items if item.status == "pending"),
            "items": [
                item.snapshot(position) for position, item in enumerate(self._items, 1)
            ],
        }
