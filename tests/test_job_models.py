"""Tests for the job state machine data model and the in-memory store."""

import pytest

from documents.models import (
    DocumentQueueItem,
    InvalidJobTransition,
    LanguageResult,
    TranslationJob,
)
from documents.store import InMemoryJobStore


def _job(**kwargs) -> TranslationJob:
    kwargs.setdefault("target_langs", ["DE", "FR"])
    kwargs.setdefault("source_text", "Hello")
    return TranslationJob(**kwargs)


class TestTranslationJob:
    def test_defaults(self):
        job = _job()
        assert job.status == "pending"
        assert job.progress == 0.0
        assert job.id.startswith("task_")
        assert job.source_lang == "AUTO"

    def test_duplicate_languages_dropped_in_order(self):
        job = _job(target_langs=["DE", "FR", "DE", "ES"])
        assert job.target_langs == ["DE", "FR", "ES"]

    def test_needs_a_source(self):
        with pytest.raises(ValueError):
            TranslationJob(target_langs=["DE"])

    def test_happy_path_transitions(self):
        job = _job()
        job.mark_processing()
        job.record_result(LanguageResult(lang_code="DE", status="completed", translated_text="Hallo"))
        job.record_result(LanguageResult(lang_code="FR", status="error", error="down"))
        job.mark_completed()

        assert job.status == "completed"
        assert job.progress == 100.0
        assert job.finished_at is not None
        assert [r.lang_code for r in job.ordered_results()] == ["DE", "FR"]

    def test_cannot_complete_with_missing_results(self):
        job = _job()
        job.mark_processing()
        job.record_result(LanguageResult(lang_code="DE", status="completed", translated_text="x"))
        with pytest.raises(InvalidJobTransition):
            job.mark_completed()

    def test_cannot_skip_processing(self):
        job = _job()
        with pytest.raises(InvalidJobTransition):
            job.mark_completed()

    def test_terminal_states_are_final(self):
        job = _job()
        job.mark_error("extraction failed")
        with pytest.raises(InvalidJobTransition):
            job.mark_processing()

    def test_error_fills_every_language(self):
        job = _job()
        job.mark_processing()
        job.record_result(LanguageResult(lang_code="DE", status="completed", translated_text="x"))
        job.mark_error("fault")

        assert job.status == "error"
        assert job.error == "fault"
        assert job.results["DE"].status == "completed"
        assert job.results["FR"].status == "error"
        assert job.results["FR"].error == "fault"

    def test_progress_is_monotonic_and_clamped(self):
        job = _job()
        assert job.advance_progress(30) == 30
        assert job.advance_progress(10) == 30
        assert job.advance_progress(250) == 100

    def test_result_for_unrequested_language_rejected(self):
        job = _job()
        with pytest.raises(ValueError):
            job.record_result(LanguageResult(lang_code="IT", status="completed"))

    def test_snapshot_is_plain_data(self):
        job = _job(kind="document", source_text=None, source_file_ref="file_1", file_name="a.txt")
        job.mark_processing()
        job.advance_progress(12.3456)
        snapshot = job.snapshot()

        assert snapshot["status"] == "processing"
        assert snapshot["progress"] == 12.35
        assert snapshot["kind"] == "document"
        snapshot["target_langs"].append("XX")
        assert job.target_langs == ["DE", "FR"]


def test_queue_item_mirrors_job():
    job = _job(source_text=None, source_file_ref="file_1", kind="document")
    item = DocumentQueueItem(job=job, file_name="a.txt", file_size=10)
    assert item.id == job.id
    assert item.status == "pending"
    job.mark_processing()
    assert item.snapshot(position=1)["status"] == "processing"


class TestInMemoryJobStore:
    def test_put_get_delete(self):
        store = InMemoryJobStore()
        job = _job()
        store.put(job)
        assert store.get(job.id) is job
        assert store.delete(job.id) is True
        assert store.delete(job.id) is False
        assert store.get(job.id) is None

    def test_list_is_oldest_first(self):
        store = InMemoryJobStore()
        newer = _job(created_at=200.0)
        older = _job(created_at=100.0)
        store.put(newer)
        store.put(older)
        assert store.list() == [older, newer]

    def test_sweep_expired(self):
        store = InMemoryJobStore(ttl_seconds=60)
        old = _job(created_at=1000.0)
        fresh = _job(created_at=1050.0)
        store.put(old)
        store.put(fresh)

        removed = store.sweep_expired(now=1070.0)

        assert removed == [old.id]
        assert store.get(fresh.id) is fresh
        assert len(store) == 1
