"""Lifecycle event handlers.

Each handler updates the session tracker and queues the note writes that
bring the sink up to date. Handlers may raise; the event router catches and
accounts for failures at its boundary.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Protocol

from sessionsync.render.notes import (
    build_raw_log_notes,
    build_skeleton_summary,
    build_summary,
)
from sessionsync.store.models import Conversation, Message, Session, format_date
from sessionsync.sync.deletion import DeletionGuard
from sessionsync.sync.paths import RAW_LOG, RAW_LOG_PART, note_path, session_slug
from sessionsync.sync.queue import CREATE, UPDATE, WriteQueue
from sessionsync.sync.rename import RenameCascade
from sessionsync.sync.tracker import SessionTracker, TrackedSession

logger = logging.getLogger(__name__)

MESSAGE_DEBOUNCE_SECONDS = 30.0


def _slug_source(title: str | None, slug: str | None) -> str:
    """Text a session's slug is derived from. Empty means "use the id"."""
    return title or slug or ""


class SessionSource(Protocol):
    """Read-only view of the upstream session store."""

    def read_session(self, session_id: str, project_id: str) -> Session | None: ...

    def read_messages(self, session_id: str) -> list[Message]: ...

    def resolve_project_name(self, project_id: str) -> str: ...

    def reconstruct_conversation(
        self, session_id: str, project_id: str
    ) -> Conversation | None: ...


class SessionHandlers:
    def __init__(
        self,
        source: SessionSource,
        tracker: SessionTracker,
        queue: WriteQueue,
        rename: RenameCascade,
        guard: DeletionGuard,
        message_debounce: float = MESSAGE_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.tracker = tracker
        self.queue = queue
        self.rename = rename
        self.guard = guard
        self.message_debounce = message_debounce
        self._clock = clock

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _total_tokens(self, session_id: str) -> int:
        return sum(m.total_tokens for m in self.source.read_messages(session_id))

    def _sync_summary(self, tracked: TrackedSession) -> Conversation | None:
        conversation = self.source.reconstruct_conversation(
            tracked.session_id, tracked.project_id
        )
        if conversation is None:
            return None
        content = build_summary(conversation, self._total_tokens(tracked.session_id))
        self.queue.enqueue(UPDATE, tracked.note_path, content)
        tracked.message_count = len(conversation.entries)
        return conversation

    def _sync_raw_log(self, tracked: TrackedSession, conversation: Conversation) -> None:
        notes = build_raw_log_notes(conversation, tracked.slug)
        root = self.tracker.notes_root
        for note in notes:
            if note.total_parts <= 1:
                path = note_path(
                    tracked.project_name, tracked.created_date, tracked.slug,
                    RAW_LOG, root=root,
                )
            else:
                path = note_path(
                    tracked.project_name, tracked.created_date, tracked.slug,
                    RAW_LOG_PART, note.part_number, root=root,
                )
            self.queue.enqueue(UPDATE, path, note.content)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_session_created(self, info: dict[str, Any]) -> None:
        session_id = info["id"]
        project_id = info.get("projectID", "")
        created = format_date(int(info["time"]["created"]))
        title = info.get("title") or session_id[:12]

        tracked = self.tracker.track(
            session_id=session_id,
            project_id=project_id,
            project_name=self.source.resolve_project_name(project_id),
            created_date=created,
            slug=session_slug(
                _slug_source(info.get("title"), info.get("slug")), session_id
            ),
        )
        content = build_skeleton_summary(
            session_id,
            tracked.project_name,
            info.get("directory") or "",
            created,
            title,
        )
        self.queue.enqueue(CREATE, tracked.note_path, content)

    def on_session_updated(self, info: dict[str, Any]) -> None:
        tracked = self.tracker.get(info["id"])
        if tracked is None:
            return
        if info.get("title"):
            self.rename.apply(tracked, info["title"])
        self._sync_summary(tracked)

    def on_session_idle(self, session_id: str) -> None:
        tracked = self.tracker.get(session_id)
        if tracked is None:
            return

        session = self.source.read_session(session_id, tracked.project_id)
        if session is not None:
            self.guard.record_success(tracked)
            self.rename.apply(tracked, _slug_source(session.title, session.slug))

        conversation = self._sync_summary(tracked)
        if conversation is not None:
            self._sync_raw_log(tracked, conversation)

    def on_session_compacting(self, session_id: str) -> None:
        tracked = self.tracker.get(session_id)
        if tracked is None:
            return
        conversation = self.source.reconstruct_conversation(
            session_id, tracked.project_id
        )
        if conversation is None:
            return
        self._sync_raw_log(tracked, conversation)
        content = build_summary(conversation, self._total_tokens(session_id))
        self.queue.enqueue(UPDATE, tracked.note_path, content)
        tracked.message_count = len(conversation.entries)

    def on_message_updated(self, info: dict[str, Any]) -> None:
        tracked = self.tracker.get(info.get("sessionID", ""))
        if tracked is None:
            return
        now = self._clock()
        if now - tracked.last_synced_at < self.message_debounce:
            return
        tracked.last_synced_at = now
        tracked.message_count = len(self.source.read_messages(tracked.session_id))
