"""In-memory registry of the sessions being mirrored to the note sink."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator

from sessionsync.sync.paths import DEFAULT_ROOT, note_folder, note_path

logger = logging.getLogger(__name__)

_ID_PREFIX_RE = re.compile(r"^[a-z]+_")


@dataclass
class TrackedSession:
    """Sync bookkeeping for one live session.

    ``note_path`` is the summary note's path. It is derived from the
    project name, creation date and slug, and replaced (never edited) when
    the slug changes.
    """

    session_id: str
    project_id: str
    project_name: str
    created_date: str
    slug: str
    note_path: str
    message_count: int = 0
    last_synced_at: float = 0.0
    seen_in_upstream: bool = False
    title_slug: str = ""


class SessionTracker:
    """Maps session ids to their tracked state.

    Created once per service; cleared only by ``clear()`` or by removing
    sessions that were trashed.
    """

    def __init__(self, notes_root: str = DEFAULT_ROOT):
        self.notes_root = notes_root
        self._sessions: dict[str, TrackedSession] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[TrackedSession]:
        return iter(list(self._sessions.values()))

    def get(self, session_id: str) -> TrackedSession | None:
        return self._sessions.get(session_id)

    def summary_path(self, project_name: str, created_date: str, slug: str) -> str:
        return note_path(project_name, created_date, slug, root=self.notes_root)

    def unique_slug(
        self, session_id: str, project_name: str, created_date: str, slug: str
    ) -> str:
        """Return ``slug``, suffixed if another tracked session owns its folder."""
        folder = note_folder(project_name, created_date, slug, self.notes_root)
        taken = any(
            other.session_id != session_id
            and note_folder(
                other.project_name, other.created_date, other.slug, self.notes_root
            )
            == folder
            for other in self._sessions.values()
        )
        if not taken:
            return slug
        suffix = _ID_PREFIX_RE.sub("", session_id.lower())[:6] or session_id[:6]
        return f"{slug}-{suffix}"

    def track(
        self,
        session_id: str,
        project_id: str,
        project_name: str,
        created_date: str,
        slug: str,
    ) -> TrackedSession:
        """Register a session (replacing any previous entry for the same id)."""
        title_slug = slug
        slug = self.unique_slug(session_id, project_name, created_date, slug)
        tracked = TrackedSession(
            session_id=session_id,
            project_id=project_id,
            project_name=project_name,
            created_date=created_date,
            slug=slug,
            note_path=self.summary_path(project_name, created_date, slug),
            title_slug=title_slug,
        )
        self._sessions[session_id] = tracked
        logger.info(f"Tracking session {session_id} at {tracked.note_path}")
        return tracked

    def reslug(self, tracked: TrackedSession, title_slug: str, slug: str) -> None:
        """Move a session to a new slug, recomputing its note path."""
        tracked.title_slug = title_slug
        tracked.slug = slug
        tracked.note_path = self.summary_path(
            tracked.project_name, tracked.created_date, slug
        )

    def remove(self, session_id: str) -> TrackedSession | None:
        return self._sessions.pop(session_id, None)

    def clear(self) -> None:
        self._sessions.clear()
