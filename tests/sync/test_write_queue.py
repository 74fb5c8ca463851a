"""Tests for the durable write queue."""

import json

import pytest

from sessionsync.exceptions import QueueError
from sessionsync.sync.queue import (
    CREATE,
    DELETE,
    DISCARD_THRESHOLD,
    UPDATE,
    QueueItem,
    WriteQueue,
)


class TestEnqueue:
    def test_persists_one_file_per_item(self, write_queue):
        item = write_queue.enqueue(CREATE, "a/summary.md", "hello")

        record = write_queue.queue_dir / f"{item.id}.json"
        assert record.exists()
        data = json.loads(record.read_text())
        assert data == {
            "id": item.id,
            "operation": "create",
            "path": "a/summary.md",
            "content": "hello",
            "retryCount": 0,
            "createdAt": item.created_at,
        }

    def test_delete_carries_no_content(self, write_queue):
        item = write_queue.enqueue(DELETE, "a/summary.md", "ignored")
        assert item.content == ""

    def test_rejects_unknown_operation(self, write_queue):
        with pytest.raises(QueueError):
            write_queue.enqueue("move", "a.md")

    def test_rejects_empty_path(self, write_queue):
        with pytest.raises(QueueError):
            write_queue.enqueue(UPDATE, "")

    def test_no_temp_files_left_behind(self, write_queue):
        write_queue.enqueue(CREATE, "a.md", "x")
        assert list(write_queue.queue_dir.glob("*.tmp")) == []


class TestOrdering:
    def test_same_clock_reading_keeps_enqueue_order(self, write_queue):
        """Items queued in one burst come back in the order they were queued."""
        paths = [f"note-{i}.md" for i in range(20)]
        for path in paths:
            write_queue.enqueue(UPDATE, path, "x")

        assert [item.path for item in write_queue.list_pending()] == paths

    def test_order_survives_restart(self, tmp_path, clock):
        first = WriteQueue(tmp_path / "q", clock=clock)
        first.enqueue(UPDATE, "one.md")
        clock.advance(1)
        first.enqueue(UPDATE, "two.md")

        reopened = WriteQueue(tmp_path / "q", clock=clock)
        assert [i.path for i in reopened.list_pending()] == ["one.md", "two.md"]

    def test_empty_when_directory_missing(self, tmp_path):
        assert WriteQueue(tmp_path / "missing").list_pending() == []
        assert len(WriteQueue(tmp_path / "missing")) == 0


class TestRemoval:
    def test_mark_done_removes_record(self, write_queue):
        item = write_queue.enqueue(CREATE, "a.md")
        write_queue.mark_done(item.id)
        assert write_queue.list_pending() == []

    def test_mark_done_twice_is_noop(self, write_queue):
        item = write_queue.enqueue(CREATE, "a.md")
        write_queue.mark_done(item.id)
        write_queue.mark_done(item.id)
        assert len(write_queue) == 0


class TestFailures:
    def test_record_failure_persists_retry_count(self, write_queue):
        item = write_queue.enqueue(UPDATE, "a.md", "x")
        write_queue.record_failure(item)
        write_queue.record_failure(item)

        (pending,) = write_queue.list_pending()
        assert pending.retry_count == 2
        assert pending.id == item.id

    def test_record_failure_after_removal_does_not_resurrect(self, write_queue):
        item = write_queue.enqueue(UPDATE, "a.md", "x")
        write_queue.mark_done(item.id)
        write_queue.record_failure(item)
        assert len(write_queue) == 0

    def test_should_discard_at_threshold(self):
        item = QueueItem("id", UPDATE, "a.md", "", DISCARD_THRESHOLD - 1, 1.0)
        assert not WriteQueue.should_discard(item)
        item.retry_count = DISCARD_THRESHOLD
        assert WriteQueue.should_discard(item)


class TestCorruption:
    def test_unreadable_record_is_skipped(self, write_queue):
        write_queue.enqueue(UPDATE, "good.md", "x")
        (write_queue.queue_dir / "broken.json").write_text("{not json")

        assert [i.path for i in write_queue.list_pending()] == ["good.md"]

    def test_record_missing_fields_is_skipped(self, write_queue):
        write_queue.queue_dir.mkdir(parents=True, exist_ok=True)
        (write_queue.queue_dir / "partial.json").write_text(json.dumps({"id": "x"}))
        assert write_queue.list_pending() == []
