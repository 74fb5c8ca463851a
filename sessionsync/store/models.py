"""Records read from the upstream session store.

The store writes one JSON document per session, message and part. Only the
fields the sync engine and the note renderers consume are modelled here;
timestamps stay in epoch milliseconds as written upstream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def format_date(ts_ms: int) -> str:
    """Return the UTC calendar date (YYYY-MM-DD) of an epoch-ms timestamp."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


@dataclass
class SessionTime:
    created: int
    updated: int | None = None
    completed: int | None = None


@dataclass
class Session:
    id: str
    project_id: str
    time: SessionTime
    title: str = ""
    slug: str = ""
    directory: str = ""
    parent_id: str | None = None

    @property
    def display_title(self) -> str:
        return self.title or self.slug or self.id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        time = data.get("time") or {}
        return cls(
            id=data["id"],
            project_id=data.get("projectID", ""),
            time=SessionTime(
                created=int(time["created"]),
                updated=time.get("updated"),
                completed=time.get("completed"),
            ),
            title=data.get("title") or "",
            slug=data.get("slug") or "",
            directory=data.get("directory") or "",
            parent_id=data.get("parentID"),
        )


@dataclass
class Message:
    id: str
    session_id: str
    role: str
    created: int
    model_id: str | None = None
    agent: str | None = None
    cost: float | None = None
    tokens: dict[str, Any] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return int(self.tokens.get("input") or 0) + int(self.tokens.get("output") or 0)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            id=data["id"],
            session_id=data.get("sessionID", ""),
            role=data.get("role", "user"),
            created=int((data.get("time") or {}).get("created", 0)),
            model_id=data.get("modelID"),
            agent=data.get("agent"),
            cost=data.get("cost"),
            tokens=data.get("tokens") or {},
        )


@dataclass
class ToolCall:
    tool: str
    input: dict[str, Any] | None = None
    output: str | None = None
    status: str | None = None


@dataclass
class ConversationEntry:
    role: str
    message_id: str
    timestamp: int
    text_content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    model: str | None = None
    agent: str | None = None
    cost: float | None = None


@dataclass
class Conversation:
    """A session with its messages flattened into conversation entries."""

    session: Session
    project_name: str
    project_path: str
    entries: list[ConversationEntry] = field(default_factory=list)
