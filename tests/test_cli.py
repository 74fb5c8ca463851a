"""Tests for the sessionsync CLI commands."""

from unittest.mock import patch

import pytest

from sessionsync.cli import flush, queue, status
from sessionsync.sync.processor import TickResult
from sessionsync.sync.queue import UPDATE, WriteQueue


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("OBSIDIAN_URL", "http://sink.test")
    monkeypatch.setenv("SESSIONSYNC_QUEUE_DIR", str(tmp_path / "q"))
    monkeypatch.setenv("SESSIONSYNC_STORAGE_PATH", str(tmp_path / "storage"))
    monkeypatch.delenv("SESSIONSYNC_FLUSH_INTERVAL", raising=False)
    monkeypatch.delenv("SESSIONSYNC_POLL_INTERVAL", raising=False)
    return tmp_path


class TestQueueCommand:
    def test_empty(self, env, capsys):
        queue()
        assert "Queue is empty" in capsys.readouterr().out

    def test_lists_items(self, env, capsys):
        WriteQueue(env / "q").enqueue(UPDATE, "a.md", "x")
        queue()
        out = capsys.readouterr().out
        assert "a.md" in out
        assert "Total: 1 item(s)" in out


class TestFlushCommand:
    def test_unreachable_sink(self, env, capsys):
        with patch("sessionsync.cli.SyncService.flush", return_value=TickResult(skipped=True)):
            assert flush() == 1
        assert "unreachable" in capsys.readouterr().out

    def test_halted(self, env, capsys):
        result = TickResult(delivered=["a.md"], failed="b.md")
        with patch("sessionsync.cli.SyncService.flush", return_value=result):
            assert flush() == 1
        out = capsys.readouterr().out
        assert "a.md" in out
        assert "Halted at b.md" in out


class TestStatusCommand:
    def test_reports_health(self, env, capsys):
        with patch("sessionsync.cli.SyncService") as service_cls:
            service = service_cls.return_value
            service.sink.health_check.return_value = False
            service.queue.__len__.return_value = 4
            service.source.list_sessions.return_value = []
            status()

        out = capsys.readouterr().out
        assert "No" in out
        assert "4" in out

    def test_counts_upstream_sessions(self, env, store, capsys):
        store.add_session("S1", title="One")
        store.add_session("S2", title="Two")
        with patch("sessionsync.sync.sink.NoteSinkClient.health_check", return_value=False):
            status()

        out = capsys.readouterr().out
        assert "Upstream sessions" in out
        assert "2" in out.split("Upstream sessions")[1].splitlines()[0]

