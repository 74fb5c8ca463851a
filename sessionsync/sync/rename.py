"""Relocate a session's notes when its title changes."""

import logging

from sessionsync.sync.paths import raw_log_paths, session_slug
from sessionsync.sync.queue import DELETE, WriteQueue
from sessionsync.sync.tracker import SessionTracker, TrackedSession

logger = logging.getLogger(__name__)


class RenameCascade:
    """Clears a session's notes at its old slug when the slug changes.

    The cascade only deletes. The next content sync for the session writes
    the summary (and raw logs) at the new path.
    """

    def __init__(self, tracker: SessionTracker, queue: WriteQueue):
        self.tracker = tracker
        self.queue = queue

    def apply(self, tracked: TrackedSession, new_title: str) -> bool:
        """Re-slug ``tracked`` for ``new_title``.

        Returns:
            True if the slug changed and deletes were queued
        """
        title_slug = session_slug(new_title, fallback=tracked.session_id)
        if title_slug == tracked.title_slug:
            return False

        new_slug = self.tracker.unique_slug(
            tracked.session_id, tracked.project_name, tracked.created_date, title_slug
        )
        if new_slug == tracked.slug:
            tracked.title_slug = title_slug
            return False

        old_path = tracked.note_path
        new_path = self.tracker.summary_path(
            tracked.project_name, tracked.created_date, new_slug
        )

        self.queue.enqueue(DELETE, old_path)
        for path in raw_log_paths(
            tracked.project_name, tracked.created_date, tracked.slug, self.tracker.notes_root
        ):
            self.queue.enqueue(DELETE, path)

        self.tracker.reslug(tracked, title_slug, new_slug)
        logger.info(f"Session {tracked.session_id} renamed: {old_path} -> {new_path}")
        return True
