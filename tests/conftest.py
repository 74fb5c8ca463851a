"""Shared fixtures for session sync tests."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sessionsync.sync.queue import WriteQueue
from sessionsync.sync.sink import NoteRead, NoteSinkClient

# 2026-02-14 10:00:00 UTC
FEB_14_MS = 1771063200000


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StoreBuilder:
    """Writes records into a fake upstream storage tree."""

    def __init__(self, root: Path):
        self.root = root

    def _write(self, path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data))

    def add_project(self, project_id: str, worktree: str) -> None:
        self._write(
            self.root / "project" / f"{project_id}.json",
            {"id": project_id, "worktree": worktree},
        )

    def add_session(
        self,
        session_id: str,
        project_id: str = "proj1",
        title: str = "",
        created: int = FEB_14_MS,
        updated: int | None = None,
        **extra,
    ) -> dict:
        info = {
            "id": session_id,
            "projectID": project_id,
            "title": title,
            "directory": "/work/my-app",
            "time": {"created": created, "updated": updated or created},
            **extra,
        }
        self._write(self.root / "session" / project_id / f"{session_id}.json", info)
        return info

    def remove_session(self, session_id: str, project_id: str = "proj1") -> None:
        (self.root / "session" / project_id / f"{session_id}.json").unlink()

    def add_message(
        self,
        session_id: str,
        message_id: str,
        role: str = "user",
        created: int = FEB_14_MS,
        text: str = "",
        **extra,
    ) -> None:
        self._write(
            self.root / "message" / session_id / f"{message_id}.json",
            {
                "id": message_id,
                "sessionID": session_id,
                "role": role,
                "time": {"created": created},
                **extra,
            },
        )
        if text:
            self.add_part(message_id, f"{message_id}-p1", {"type": "text", "text": text})

    def add_part(self, message_id: str, part_id: str, data: dict) -> None:
        self._write(
            self.root / "part" / message_id / f"{part_id}.json",
            {"id": part_id, "messageID": message_id, **data},
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    """Empty upstream storage tree with one project."""
    builder = StoreBuilder(tmp_path / "storage")
    builder.add_project("proj1", "/work/my-app")
    return builder


@pytest.fixture
def write_queue(tmp_path, clock):
    return WriteQueue(tmp_path / "queue", clock=clock)


@pytest.fixture
def fake_sink():
    """NoteSinkClient double that accepts every call."""
    sink = MagicMock(spec=NoteSinkClient)
    sink.available = True
    sink.health_check.return_value = True
    sink.write.return_value = True
    sink.delete.return_value = True
    sink.fetch.return_value = NoteRead(reachable=True)
    return sink
