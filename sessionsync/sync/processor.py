"""Drains the write queue into the note sink."""

import logging
from dataclasses import dataclass, field

from sessionsync.sync.queue import DELETE, QueueItem, WriteQueue
from sessionsync.sync.sink import NoteSinkClient

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """Outcome of one processor tick."""

    skipped: bool = False
    delivered: list[str] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    failed: str | None = None

    @property
    def halted(self) -> bool:
        return self.failed is not None


class SyncProcessor:
    """Delivers queued writes strictly in order, halting at the first failure.

    A failed item keeps its place at the head of the queue, so nothing
    queued after it reaches the sink before it does, whatever its path.
    """

    def __init__(self, queue: WriteQueue, sink: NoteSinkClient):
        self.queue = queue
        self.sink = sink

    def _deliver(self, item: QueueItem) -> bool:
        if item.operation == DELETE:
            return self.sink.delete(item.path)
        return self.sink.write(item.path, item.content)

    def tick(self) -> TickResult:
        """Run one flush pass."""
        result = TickResult()

        if not self.sink.available and not self.sink.health_check():
            result.skipped = True
            return result

        for item in self.queue.list_pending():
            if self.queue.should_discard(item):
                self.queue.mark_done(item.id)
                result.discarded.append(item.path)
                logger.warning(
                    f"Discarded {item.operation} {item.path} after {item.retry_count} retries"
                )
                continue

            if self._deliver(item):
                self.queue.mark_done(item.id)
                result.delivered.append(item.path)
                continue

            self.sink.available = False
            self.queue.record_failure(item)
            result.failed = item.path
            logger.debug(
                f"Delivery of {item.operation} {item.path} failed "
                f"(retry {item.retry_count}), halting flush"
            )
            break

        if result.delivered:
            logger.info(f"Flushed {len(result.delivered)} note write(s)")
        return result
