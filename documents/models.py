"""
Job state for text and document translations.

A TranslationJob moves pending -> processing -> completed | error and is
mutated only by the pipeline executing it. HTTP handlers read snapshots.
"""

from __future__ import annotations

# Standard library
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

JobStatus = Literal["pending", "processing", "completed", "error"]
JobKind = Literal["text", "document"]
LanguageStatus = Literal["completed", "error"]

TERMINAL_STATUSES = ("completed", "error")

_ALLOWED_TRANSITIONS: Dict[str, tuple] = {
    "pending": ("processing", "error"),
    "processing": ("completed", "error"),
    "completed": (),
    "error": (),
}


class InvalidJobTransition(RuntimeError):
    """Raised on a status change the lifecycle does not allow."""


def new_task_id() -> str:
    return f"task_{uuid.uuid4().hex[:16]}"


@dataclass
class LanguageResult:
    """Outcome for one requested target language."""

    lang_code: str
    status: LanguageStatus
    translated_text: Optional[str] = None
    document_id: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None
    total_chunks: int = 0
    fallback_chunks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lang_code": self.lang_code,
            "status": self.status,
            "translated_text": self.translated_text,
            "document_id": self.document_id,
            "note": self.note,
            "error": self.error,
            "total_chunks": self.total_chunks,
            "fallback_chunks": self.fallback_chunks,
        }


@dataclass
class TranslationJob:
    """One submitted source translated into an ordered set of languages."""

    target_langs: List[str]
    source_lang: str = "AUTO"
    source_text: Optional[str] = None
    source_file_ref: Optional[str] = None
    kind: JobKind = "text"
    file_name: Optional[str] = None
    file_size: int = 0
    id: str = field(default_factory=new_task_id)
    status: JobStatus = "pending"
    progress: float = 0.0
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    results: Dict[str, LanguageResult] = field(default_factory=dict)
    error: Optional[str] = None

    def __post_init__(self) -> None:
        ordered: List[str] = []
        for code in self.target_langs:
            if code not in ordered:
                ordered.append(code)
        self.target_langs = ordered
        if self.source_text is None and self.source_file_ref is None:
            raise ValueError("A job needs source_text or source_file_ref")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _transition(self, new_status: JobStatus) -> None:
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransition(
                f"Job {self.id}: cannot move from {self.status} to {new_status}"
            )
        self.status = new_status

    def mark_processing(self) -> None:
        self._transition("processing")
        self.started_at = time.time()

    def advance_progress(self, value: float) -> float:
        """Raises progress to ``value`` (clamped to 0-100); never lowers it."""
        value = max(0.0, min(100.0, value))
        if value > self.progress:
            self.progress = value
        return self.progress

    def record_result(self, result: LanguageResult) -> None:
        if result.lang_code not in self.target_langs:
            raise ValueError(f"Job {self.id} did not request {result.lang_code}")
        self.results[result.lang_code] = result

    def pending_langs(self) -> List[str]:
        return [lang for lang in self.target_langs if lang not in self.results]

    def mark_completed(self) -> None:
        missing = self.pending_langs()
        if missing:
            raise InvalidJobTransition(
                f"Job {self.id}: results missing for {', '.join(missing)}"
            )
        self._transition("completed")
        self.progress = 100.0
        self.finished_at = time.time()

    def mark_error(self, message: str) -> None:
        """Terminal failure; languages without a result are recorded as errors."""
        for lang in self.pending_langs():
            self.results[lang] = LanguageResult(
                lang_code=lang, status="error", error=message
            )
        self._transition("error")
        self.error = message
        self.finished_at = time.time()

    def ordered_results(self) -> List[LanguageResult]:
        return [self.results[lang] for lang in self.target_langs if lang in self.results]

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy that is safe to hand to readers."""
        return {
            "id": self.id,
            "kind": self.kind,
            "status": self.status,
            "progress": round(self.progress, 2),
            "source_lang": self.source_lang,
            "target_langs": list(self.target_langs),
            "file_name": self.file_name,
            "file_size": self.file_size,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "results": [result.to_dict() for result in self.ordered_results()],
            "error": self.error,
        }


@dataclass
class DocumentQueueItem:
    """A document job waiting in, or processed by, the document queue."""

    job: TranslationJob
    file_name: str
    file_size: int = 0
    enqueued_at: float = field(default_factory=time.time)

    @property
    def id(self) -> str:
        return self.job.id

    @property
    def status(self) -> JobStatus:
        return self.job.status

    @property
    def created_at(self) -> float:
        return self.job.created_at

    def snapshot(self, position: int) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "position": position,
            "status": self.status,
            "progress": round(self.job.progress, 2),
            "enqueued_at": self.enqueued_at,
        }
