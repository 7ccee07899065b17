"""Job registry abstraction and its in-memory implementation."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, runtime_checkable

from documents.models import TranslationJob

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@runtime_checkable
class JobStore(Protocol):
    """Registry of jobs keyed by id."""

    def get(self, job_id: str) -> Optional[TranslationJob]:
        """Return a job or None."""

    def put(self, job: TranslationJob) -> None:
        """Insert or replace a job."""

    def delete(self, job_id: str) -> bool:
        """Remove a job; True when it existed."""

    def list(self) -> List[TranslationJob]:
        """All jobs, oldest first."""

    def sweep_expired(self, now: float) -> List[str]:
        """Remove jobs older than the TTL; return their ids."""


class InMemoryJobStore:
    """Process-local store. A restart loses every job."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._jobs: Dict[str, TranslationJob] = {}

    def get(self, job_id: str) -> Optional[TranslationJob]:
        return self._jobs.get(job_id)

    def put(self, job: TranslationJob) -> None:
        self._jobs[job.id] = job

    def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def list(self) -> List[TranslationJob]:
        return sorted(self._jobs.values(), key=lambda job: job.created_at)

    def sweep_expired(self, now: float) -> List[str]:
        expired = [
            job_id
            for job_id, job in self._jobs.items()
            if now - job.created_at > self.ttl_seconds
        ]
        for job_id in expired:
            del self._jobs[job_id]
            logger.info(f"Removed expired job: {job_id}")
        return expired

    def __len__(self) -> int:
        return len(self._jobs)
