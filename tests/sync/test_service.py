"""End-to-end tests for the wired sync service."""

from unittest.mock import MagicMock

import httpx
import pytest

from sessionsync.config import SyncConfig
from sessionsync.sync.queue import CREATE, DELETE, UPDATE
from sessionsync.sync.scheduler import Scheduler
from sessionsync.sync.service import FLUSH_TASK, POLL_TASK, SyncService
from sessionsync.sync.sink import NoteRead, NoteSinkClient

FOLDER = "10-Projects/my-app/sessions/2026-02"


@pytest.fixture
def config(tmp_path, store):
    return SyncConfig(
        sink_url="http://sink.test",
        storage_path=store.root,
        queue_dir=tmp_path / "queue",
    )


@pytest.fixture
def service(config, fake_sink, clock):
    return SyncService(config, sink=fake_sink, scheduler=Scheduler(clock=clock))


def created(store, session_id, title):
    return {"type": "session.created", "properties": {"info": store.add_session(session_id, title=title)}}


class TestExampleScenario:
    def test_create_then_rename(self, service, store):
        service.handle_event(created(store, "S1", "Fix login bug"))

        (item,) = service.queue.list_pending()
        assert item.operation == CREATE
        assert item.path == f"{FOLDER}/14-fix-login-bug/summary.md"
        assert "message_count: 0" in item.content

        info = store.add_session("S1", title="Completely different title")
        service.handle_event({"type": "session.updated", "properties": {"info": info}})

        pending = service.queue.list_pending()
        assert (DELETE, f"{FOLDER}/14-fix-login-bug/summary.md") in [
            (i.operation, i.path) for i in pending
        ]
        assert (pending[-1].operation, pending[-1].path) == (
            UPDATE,
            f"{FOLDER}/14-completely-different-title/summary.md",
        )

    def test_final_sink_state_after_rename(self, service, store):
        """After flushing, only the new summary exists in the sink."""
        notes = {}

        def write(path, content):
            notes[path] = content
            return True

        def delete(path):
            notes.pop(path, None)
            return True

        service.sink.write.side_effect = write
        service.sink.delete.side_effect = delete

        service.handle_event(created(store, "S1", "Fix login bug"))
        service.flush()
        info = store.add_session("S1", title="Completely different title")
        service.handle_event({"type": "session.updated", "properties": {"info": info}})
        service.flush()

        assert list(notes) == [f"{FOLDER}/14-completely-different-title/summary.md"]

    def test_vanished_session_goes_to_trash(self, service, store):
        service.handle_event(created(store, "S2", "Flaky work"))
        service.flush()
        summary = service.tracker.get("S2").note_path
        service.sink.fetch.side_effect = lambda path: NoteRead(
            reachable=True, content="# S2" if path == summary else None
        )

        assert service.poll() == []
        store.remove_session("S2")
        assert service.poll() == []
        assert service.poll() == []
        assert service.poll() == ["S2"]

        pending = service.queue.list_pending()
        creates = [i for i in pending if i.operation == CREATE]
        assert len(creates) == 1
        assert "/trash/" in creates[0].path
        assert creates[0].content == "# S2"
        assert [i.path for i in pending if i.operation == DELETE] == [summary]
        assert service.tracker.get("S2") is None

    def test_replayed_flush_converges(self, config, store, clock):
        """Redelivering writes whose records survived a crash leaves the vault unchanged."""
        vault = {}

        def handler(request):
            if request.url.path == "/":
                return httpx.Response(200, json={"status": "OK"})
            path = request.url.path.removeprefix("/vault/")
            if request.method == "PUT":
                vault[path] = request.content.decode()
                return httpx.Response(204)
            if request.method == "DELETE":
                return httpx.Response(204 if vault.pop(path, None) is not None else 404)
            if path in vault:
                return httpx.Response(200, text=vault[path])
            return httpx.Response(404)

        sink = NoteSinkClient("http://sink.test", transport=httpx.MockTransport(handler))
        service = SyncService(config, sink=sink, scheduler=Scheduler(clock=clock))
        store.add_message("S1", "m1", text="Login fails")
        service.handle_event(created(store, "S1", "Fix login bug"))
        service.handle_event({"type": "session.idle", "properties": {"sessionID": "S1"}})
        assert UPDATE in [i.operation for i in service.queue.list_pending()]

        records = {p: p.read_bytes() for p in service.queue.queue_dir.glob("*.json")}
        assert service.flush().delivered
        delivered = dict(vault)

        # delivered but never marked done
        for record, data in records.items():
            record.write_bytes(data)
        result = service.flush()

        assert len(result.delivered) == len(records)
        assert vault == delivered
        assert len(service.queue) == 0
        summary = service.tracker.get("S1").note_path
        assert "message_count: 1" in vault[summary]
        sink.close()


class TestServiceLifecycle:
    def test_handler_failures_are_reported(self, service):
        service.handle_event({"type": "session.created", "properties": {}})
        assert service.status()["handler_failures"] == {"session.created": 1}

    def test_status(self, service, store):
        service.handle_event(created(store, "S1", "Fix login bug"))
        status = service.status()
        assert status["pending"] == 1
        assert status["tracked_sessions"] == 1
        assert status["sink_available"] is True

    def test_reset_forgets_sessions(self, service, store):
        service.handle_event(created(store, "S1", "Fix login bug"))
        service.reset()
        assert len(service.tracker) == 0

    def test_post_event_runs_on_scheduler(self, service, store):
        service.post_event(created(store, "S1", "Fix login bug"))
        assert len(service.tracker) == 0
        service.scheduler.drain()
        assert len(service.tracker) == 1

    def test_start_registers_timers(self, config, fake_sink):
        scheduler = MagicMock(spec=Scheduler)
        service = SyncService(config, sink=fake_sink, scheduler=scheduler)

        service.start()
        service.stop()

        fake_sink.health_check.assert_called_once()
        registered = {c.args[0]: c.args[1] for c in scheduler.add_task.call_args_list}
        assert registered == {FLUSH_TASK: 7.0, POLL_TASK: 60.0}
        scheduler.start.assert_called_once()
        scheduler.stop.assert_called_once()
        fake_sink.close.assert_called_once()
