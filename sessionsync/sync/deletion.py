"""Deletion guard: trash notes of sessions that vanished upstream.

Per tracked session the guard keeps a count of consecutive failed upstream
reads. A session is only considered deleted after DELETION_THRESHOLD
consecutive failures, and only if a read had succeeded at least once since
tracking began. Any successful read resets the count.

  Tracked --fail--> Pending(1) --fail--> Pending(2) --fail--> Trashing -> removed
     ^                  |                    |
     +-----success------+--------------------+

Trashing reads every note from the sink first. If the sink cannot be reached
nothing is queued and the session stays in Trashing until a later poll.
"""

import logging

from sessionsync.sync.paths import (
    MAX_RAW_LOG_PARTS,
    RAW_LOG,
    RAW_LOG_PART,
    quarantine_path,
    sibling_path,
)
from sessionsync.sync.queue import CREATE, DELETE, WriteQueue
from sessionsync.sync.sink import NoteSinkClient
from sessionsync.sync.tracker import SessionTracker, TrackedSession

logger = logging.getLogger(__name__)

DELETION_THRESHOLD = 3


class DeletionGuard:
    """Consecutive-failure counter driving the trash decision.

    Args:
        tracker: Registry of tracked sessions
        queue: Write queue receiving quarantine copies and deletes
        sink: Used to read the current notes before quarantining them
        source: Session store exposing ``read_session(session_id, project_id)``
    """

    def __init__(
        self,
        tracker: SessionTracker,
        queue: WriteQueue,
        sink: NoteSinkClient,
        source,
    ):
        self.tracker = tracker
        self.queue = queue
        self.sink = sink
        self.source = source
        self._failures: dict[str, int] = {}

    def failures(self, session_id: str) -> int:
        return self._failures.get(session_id, 0)

    def record_success(self, tracked: TrackedSession) -> None:
        tracked.seen_in_upstream = True
        self._failures.pop(tracked.session_id, None)

    def record_failure(self, tracked: TrackedSession) -> int:
        """Count a failed read. Returns the consecutive failure count."""
        if not tracked.seen_in_upstream:
            # Never confirmed upstream, most likely racing its own creation.
            return 0
        count = self._failures.get(tracked.session_id, 0) + 1
        self._failures[tracked.session_id] = count
        logger.debug(
            f"Session {tracked.session_id} unreadable upstream ({count}/{DELETION_THRESHOLD})"
        )
        return count

    def check(self, tracked: TrackedSession) -> bool:
        """Read one session upstream and advance its state.

        At or past the threshold the trash is attempted on every check until
        it succeeds, so an unreachable sink only postpones it.

        Returns:
            True if the session was trashed
        """
        try:
            session = self.source.read_session(tracked.session_id, tracked.project_id)
        except Exception as e:
            logger.debug(f"Reading session {tracked.session_id} raised: {e}")
            session = None

        if session is not None:
            self.record_success(tracked)
            return False

        if self.record_failure(tracked) < DELETION_THRESHOLD:
            return False

        return self.trash(tracked)

    def poll(self) -> list[str]:
        """Check every tracked session once.

        Returns:
            Ids of sessions trashed by this poll
        """
        trashed = []
        for tracked in self.tracker:
            if self.check(tracked):
                trashed.append(tracked.session_id)
        return trashed

    def _existing_notes(self, tracked: TrackedSession) -> list[tuple[str, str]] | None:
        """Current content of every note the session has in the sink.

        Returns None if any read could not reach the sink.
        """
        summary = tracked.note_path
        notes = []
        for path in (summary, sibling_path(summary, RAW_LOG)):
            result = self.sink.fetch(path)
            if not result.reachable:
                return None
            if result.found:
                notes.append((path, result.content))

        for i in range(1, MAX_RAW_LOG_PARTS + 1):
            path = sibling_path(summary, f"{RAW_LOG_PART}-{i}")
            result = self.sink.fetch(path)
            if not result.reachable:
                return None
            if not result.found:
                break
            notes.append((path, result.content))
        return notes

    def trash(self, tracked: TrackedSession) -> bool:
        """Copy the session's notes to quarantine, delete the originals, forget it.

        Nothing is queued and the session stays tracked if the sink cannot be
        read.

        Returns:
            True if the session was trashed
        """
        notes = self._existing_notes(tracked)
        if notes is None:
            logger.warning(
                f"Session {tracked.session_id} gone upstream but note sink unreachable, "
                "retrying trash on next poll"
            )
            return False

        root = self.tracker.notes_root
        for path, content in notes:
            self.queue.enqueue(CREATE, quarantine_path(path, root), content)
            self.queue.enqueue(DELETE, path)

        self.tracker.remove(tracked.session_id)
        self._failures.pop(tracked.session_id, None)
        logger.info(
            f"Session {tracked.session_id} gone upstream, moved {len(notes)} note(s) to trash"
        )
        return True

    def clear(self) -> None:
        self._failures.clear()
