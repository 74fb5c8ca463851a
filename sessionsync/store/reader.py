"""Read-only access to the upstream session store.

The store is a tree of JSON documents that its owner rewrites in place:

  session/<project_id>/<session_id>.json
  message/<session_id>/<message_id>.json
  part/<message_id>/<part_id>.json
  project/<project_id>.json

Any of these may be half-written or already removed when we look, so every
read degrades to "absent" instead of raising.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sessionsync.store.models import (
    Conversation,
    ConversationEntry,
    Message,
    Session,
    ToolCall,
)

logger = logging.getLogger(__name__)


class SessionReader:
    """Reads sessions, messages and parts from a storage directory.

    Args:
        storage_path: Root of the upstream storage tree.
    """

    def __init__(self, storage_path: Path):
        self.storage_path = Path(storage_path)

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any] | None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Unreadable store record {path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def _read_dir(self, directory: Path) -> list[dict[str, Any]]:
        if not directory.is_dir():
            return []
        records = []
        for path in sorted(directory.glob("*.json")):
            data = self._read_json(path)
            if data is not None:
                records.append(data)
        return records

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def read_session(self, session_id: str, project_id: str) -> Session | None:
        """Read one session, or None if it is missing or unreadable."""
        path = self.storage_path / "session" / project_id / f"{session_id}.json"
        data = self._read_json(path)
        if data is None:
            return None
        try:
            return Session.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Malformed session record {path}: {e}")
            return None

    def read_messages(self, session_id: str) -> list[Message]:
        """Read a session's messages sorted by creation time."""
        messages = []
        for data in self._read_dir(self.storage_path / "message" / session_id):
            try:
                messages.append(Message.from_dict(data))
            except (KeyError, TypeError, ValueError):
                continue
        return sorted(messages, key=lambda m: m.created)

    def read_parts(self, message_id: str) -> list[dict[str, Any]]:
        """Read a message's parts sorted by part id."""
        parts = [
            p
            for p in self._read_dir(self.storage_path / "part" / message_id)
            if "id" in p
        ]
        return sorted(parts, key=lambda p: p["id"])

    def read_project(self, project_id: str) -> dict[str, Any] | None:
        return self._read_json(self.storage_path / "project" / f"{project_id}.json")

    def resolve_project_name(self, project_id: str) -> str:
        """Return the worktree folder name for a project, or the id itself."""
        project = self.read_project(project_id)
        if not project or not project.get("worktree"):
            return project_id
        return Path(project["worktree"]).name or project_id

    def list_sessions(self, project_id: str | None = None) -> list[Session]:
        """List sessions, newest first, optionally for one project."""
        session_root = self.storage_path / "session"
        if project_id:
            project_dirs = [session_root / project_id]
        elif session_root.is_dir():
            project_dirs = [p for p in session_root.iterdir() if p.is_dir()]
        else:
            return []

        sessions = []
        for project_dir in project_dirs:
            for data in self._read_dir(project_dir):
                try:
                    sessions.append(Session.from_dict(data))
                except (KeyError, TypeError, ValueError):
                    continue
        return sorted(sessions, key=lambda s: s.time.created, reverse=True)

    # ------------------------------------------------------------------
    # Conversation reconstruction
    # ------------------------------------------------------------------

    def reconstruct_conversation(
        self, session_id: str, project_id: str
    ) -> Conversation | None:
        """Flatten a session's messages and parts into conversation entries.

        Returns:
            The conversation, or None if the session itself is unreadable.
        """
        session = self.read_session(session_id, project_id)
        if session is None:
            return None

        project = self.read_project(project_id)
        worktree = (project or {}).get("worktree") or ""
        project_name = Path(worktree).name if worktree else project_id

        entries = []
        for message in self.read_messages(session_id):
            parts = self.read_parts(message.id)
            texts = [p.get("text", "") for p in parts if p.get("type") == "text"]
            tool_calls = []
            for p in parts:
                if p.get("type") != "tool":
                    continue
                state = p.get("state") or {}
                tool_calls.append(
                    ToolCall(
                        tool=p.get("tool", "unknown"),
                        input=state.get("input"),
                        output=state.get("output"),
                        status=state.get("status"),
                    )
                )
            entries.append(
                ConversationEntry(
                    role=message.role,
                    message_id=message.id,
                    timestamp=message.created,
                    text_content="\n\n".join(texts),
                    tool_calls=tool_calls,
                    model=message.model_id,
                    agent=message.agent,
                    cost=message.cost,
                )
            )

        return Conversation(
            session=session,
            project_name=project_name or project_id,
            project_path=worktree,
            entries=entries,
        )
