"""Synchronization engine: tracker, deletion guard, write queue and processor.

This module provides:
- WriteQueue: Durable, ordered queue of note writes
- NoteSinkClient: HTTP client for the note sink
- SyncProcessor: Drains the queue, halting at the first failure
- DeletionGuard: Three-strike trash decision for vanished sessions
- SessionTracker: Registry of live sessions and their note paths
- RenameCascade: Clears notes at a session's old slug
- EventRouter: Dispatches lifecycle events to handlers
- SyncService: Wires everything to a Scheduler
"""

from sessionsync.sync.deletion import DELETION_THRESHOLD, DeletionGuard
from sessionsync.sync.processor import SyncProcessor, TickResult
from sessionsync.sync.queue import DISCARD_THRESHOLD, QueueItem, WriteQueue
from sessionsync.sync.rename import RenameCascade
from sessionsync.sync.router import Event, EventRouter, HandlerOutcome
from sessionsync.sync.scheduler import Scheduler
from sessionsync.sync.service import SyncService
from sessionsync.sync.sink import NoteRead, NoteSinkClient, SearchHit
from sessionsync.sync.tracker import SessionTracker, TrackedSession

__all__ = [
    "DELETION_THRESHOLD",
    "DISCARD_THRESHOLD",
    "DeletionGuard",
    "Event",
    "EventRouter",
    "HandlerOutcome",
    "NoteRead",
    "NoteSinkClient",
    "QueueItem",
    "RenameCascade",
    "Scheduler",
    "SearchHit",
    "SessionTracker",
    "SyncProcessor",
    "SyncService",
    "TickResult",
    "TrackedSession",
    "WriteQueue",
]
