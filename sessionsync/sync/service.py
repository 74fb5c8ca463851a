"""Wires the sync engine together."""

import logging
from typing import Any, Mapping

from sessionsync.config import SyncConfig
from sessionsync.store.reader import SessionReader
from sessionsync.sync.deletion import DeletionGuard
from sessionsync.sync.handlers import SessionHandlers, SessionSource
from sessionsync.sync.processor import SyncProcessor, TickResult
from sessionsync.sync.queue import WriteQueue
from sessionsync.sync.rename import RenameCascade
from sessionsync.sync.router import Event, EventRouter, HandlerOutcome
from sessionsync.sync.scheduler import Scheduler
from sessionsync.sync.sink import NoteSinkClient
from sessionsync.sync.tracker import SessionTracker

logger = logging.getLogger(__name__)

FLUSH_TASK = "flush-queue"
POLL_TASK = "poll-deletions"


class SyncService:
    """Owns the tracker, failure counters, queue and timers for one daemon.

    Args:
        config: Service configuration
        source: Upstream session store (defaults to a SessionReader on
            ``config.storage_path``)
        sink: Note sink client (defaults to one built from ``config``)
        scheduler: Worker that runs the flush and poll timers
    """

    def __init__(
        self,
        config: SyncConfig,
        source: SessionSource | None = None,
        sink: NoteSinkClient | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.config = config
        self.source = source or SessionReader(config.storage_path)
        self.sink = sink or NoteSinkClient(
            config.sink_url,
            config.api_key,
            timeout=config.request_timeout,
            health_timeout=config.health_timeout,
        )
        self.queue = WriteQueue(config.queue_dir)
        self.tracker = SessionTracker(config.notes_root)
        self.guard = DeletionGuard(self.tracker, self.queue, self.sink, self.source)
        self.rename = RenameCascade(self.tracker, self.queue)
        self.handlers = SessionHandlers(
            self.source,
            self.tracker,
            self.queue,
            self.rename,
            self.guard,
            message_debounce=config.message_debounce,
        )
        self.router = EventRouter(self.handlers)
        self.processor = SyncProcessor(self.queue, self.sink)
        self.scheduler = scheduler or Scheduler()

    def handle_event(self, event: Event | Mapping[str, Any]) -> HandlerOutcome:
        """Dispatch an event on the calling thread."""
        return self.router.dispatch(event)

    def post_event(self, event: Event | Mapping[str, Any]) -> None:
        """Hand an event to the scheduler's worker thread."""
        self.scheduler.submit(self.handle_event, event)

    def flush(self) -> TickResult:
        return self.processor.tick()

    def poll(self) -> list[str]:
        return self.guard.poll()

    def status(self) -> dict:
        return {
            "sink_available": self.sink.available,
            "pending": len(self.queue),
            "tracked_sessions": len(self.tracker),
            "handler_failures": dict(self.router.failures),
        }

    def reset(self) -> None:
        """Forget all tracked sessions and failure counts."""
        self.tracker.clear()
        self.guard.clear()

    def start(self) -> None:
        self.sink.health_check()
        self.scheduler.add_task(FLUSH_TASK, self.config.flush_interval, self.flush)
        self.scheduler.add_task(POLL_TASK, self.config.poll_interval, self.poll)
        self.scheduler.start()
        logger.info(
            f"Sync service started (flush every {self.config.flush_interval}s, "
            f"poll every {self.config.poll_interval}s)"
        )

    def stop(self) -> None:
        self.scheduler.stop()
        self.sink.close()
