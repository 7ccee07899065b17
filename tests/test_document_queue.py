"""Tests for the serial document queue."""

import pytest

from conftest import StubTranslationClient
from core.errors import AppError
from documents.models import TranslationJob
from documents.queue import DocumentQueue

CONTENT = b"One sentence here. Another sentence there. And a third one."


async def _enqueue(queue: DocumentQueue, storage, count: int, langs=("DE",)):
    items = []
    for n in range(count):
        stored = await storage.save_upload(CONTENT, f"doc{n}.txt", "text/plain")
        job = TranslationJob(
            target_langs=list(langs),
            source_file_ref=stored.file_id,
            kind="document",
            file_name=stored.file_name,
        )
        items.append(queue.enqueue(job, file_name=stored.file_name, file_size=stored.size))
    return items


class TestRun:
    @pytest.mark.asyncio
    async def test_items_processed_one_at_a_time_in_order(self, make_pipeline, document_storage):
        client = StubTranslationClient(delays={"One sentence here.": 0.005})
        processing_counts = []
        queue = None

        def on_progress(job, lang, progress):
            processing_counts.append(
                sum(1 for item in queue.items() if item.status == "processing")
            )

        pipeline = make_pipeline(client, concurrency=2, on_progress=on_progress)
        queue = DocumentQueue(pipeline)
        items = await _enqueue(queue, document_storage, 3)

        processed = await queue.run()

        assert processed == 3
        assert all(item.status == "completed" for item in items)
        assert set(processing_counts) == {1}
        assert client.max_in_flight <= 2
        started = [item.job.started_at for item in items]
        assert started == sorted(started)

    @pytest.mark.asyncio
    async def test_pause_lets_current_item_finish(self, make_pipeline, document_storage):
        queue = None

        def pause_on_first_window(job, lang, progress):
            queue.pause()

        pipeline = make_pipeline(StubTranslationClient(), on_progress=pause_on_first_window)
        queue = DocumentQueue(pipeline)
        items = await _enqueue(queue, document_storage, 3)

        processed = await queue.run()

        assert processed == 1
        assert [item.status for item in items] == ["completed", "pending", "pending"]
        assert queue.start() is None

        pipeline.on_progress = None
        task = queue.resume()
        assert task is not None
        assert await task == 2
        assert all(item.status == "completed" for item in items)

    @pytest.mark.asyncio
    async def test_start_is_noop_when_empty_or_busy(self, make_pipeline, document_storage):
        queue = DocumentQueue(make_pipeline(StubTranslationClient()))
        assert queue.start() is None

        await _enqueue(queue, document_storage, 2)
        task = queue.start()
        assert task is not None
        assert queue.start() is None
        assert await task == 2
        assert not queue.is_running


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_rejected_while_running(self, make_pipeline, document_storage):
        queue = DocumentQueue(make_pipeline(StubTranslationClient()))
        await _enqueue(queue, document_storage, 2)
        task = queue.start()

        with pytest.raises(AppError) as exc_info:
            queue.clear()

        assert exc_info.value.status_code == 409
        await task
        assert len(queue) == 2

    @pytest.mark.asyncio
    async def test_clear_removes_items_and_jobs(self, make_pipeline, document_storage, job_store):
        queue = DocumentQueue(make_pipeline(StubTranslationClient()))
        items = await _enqueue(queue, document_storage, 2)
        await queue.run()

        assert queue.clear() == 2
        assert len(queue) == 0
        assert all(job_store.get(item.id) is None for item in items)
        assert all(
            document_storage.get_upload(item.job.source_file_ref) is None for item in items
        )
        assert document_storage._documents == {}


class TestHousekeeping:
    @pytest.mark.asyncio
    async def test_prune_drops_expired_items(self, make_pipeline, document_storage):
        queue = DocumentQueue(make_pipeline(StubTranslationClient()))
        items = await _enqueue(queue, document_storage, 3)

        assert queue.prune([items[0].id, "task_unknown"]) == 1
        assert [item.id for item in queue.items()] == [items[1].id, items[2].id]

    @pytest.mark.asyncio
    async def test_snapshot_positions(self, make_pipeline, document_storage):
        queue = DocumentQueue(make_pipeline(StubTranslationClient()))
        items = await _enqueue(queue, document_storage, 2)
        queue.pause()

        snapshot = queue.snapshot()

        assert snapshot["paused"] is True
        assert snapshot["running"] is False
        assert snapshot["pending"] == 2
        assert [(i["id"], i["position"]) for i in snapshot["items"]] == [
            (items[0].id, 1),
            (items[1].id, 2),
        ]
