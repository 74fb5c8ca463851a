"""Durable write queue.

Pending note writes are persisted one JSON file per item so they survive
restarts:

  <queue_dir>/<id>.json  ->  {"id", "operation", "path", "content",
                              "retryCount", "createdAt"}

Items are delivered in (createdAt, id) order. A record is removed only after
the sink confirms the write or once it has failed DISCARD_THRESHOLD times.
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from sessionsync.exceptions import QueueError

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
OPERATIONS = (CREATE, UPDATE, DELETE)

DISCARD_THRESHOLD = 50


@dataclass
class QueueItem:
    """One pending write against the note sink."""

    id: str
    operation: str
    path: str
    content: str
    retry_count: int
    created_at: float

    @property
    def sort_key(self) -> tuple[float, str]:
        return (self.created_at, self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "operation": self.operation,
            "path": self.path,
            "content": self.content,
            "retryCount": self.retry_count,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> QueueItem:
        return cls(
            id=data["id"],
            operation=data["operation"],
            path=data["path"],
            content=data.get("content", ""),
            retry_count=int(data.get("retryCount", 0)),
            created_at=float(data["createdAt"]),
        )


class WriteQueue:
    """File-backed FIFO of note writes.

    Args:
        queue_dir: Directory holding one JSON record per pending item
        clock: Returns the current epoch time in seconds
    """

    def __init__(self, queue_dir: Path, clock: Callable[[], float] = time.time):
        self.queue_dir = Path(queue_dir)
        self._clock = clock
        self._last_created = 0.0

    def _item_path(self, item_id: str) -> Path:
        return self.queue_dir / f"{item_id}.json"

    def _write(self, item: QueueItem) -> None:
        self.queue_dir.mkdir(parents=True, exist_ok=True)
        target = self._item_path(item.id)
        tmp = target.with_suffix(".json.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(item.to_dict(), f)
            os.replace(tmp, target)
        except OSError as e:
            logger.error(f"Failed to persist queue item {item.id}: {e}")
            raise QueueError(f"Could not persist queue item {item.id}") from e

    def _next_created_at(self) -> float:
        # Strictly increasing so items enqueued in one burst keep their order.
        now = self._clock()
        if now <= self._last_created:
            now = self._last_created + 1e-6
        self._last_created = now
        return now

    def enqueue(self, operation: str, path: str, content: str = "") -> QueueItem:
        """Persist a new pending write and return it once it is on disk.

        Raises:
            QueueError: Unknown operation, empty path, or the write failed
        """
        if operation not in OPERATIONS:
            raise QueueError(f"Unknown queue operation: {operation}")
        if not path:
            raise QueueError("Queue item path must not be empty")

        item = QueueItem(
            id=uuid.uuid4().hex,
            operation=operation,
            path=path,
            content="" if operation == DELETE else content,
            retry_count=0,
            created_at=self._next_created_at(),
        )
        self._write(item)
        logger.debug(f"Queued {operation} {path} ({item.id})")
        return item

    def list_pending(self) -> list[QueueItem]:
        """Return every persisted item in delivery order."""
        if not self.queue_dir.is_dir():
            return []

        items = []
        for path in self.queue_dir.glob("*.json"):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    items.append(QueueItem.from_dict(json.load(f)))
            except FileNotFoundError:
                continue
            except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable queue record {path.name}: {e}")
        items.sort(key=lambda item: item.sort_key)
        return items

    def mark_done(self, item_id: str) -> None:
        """Remove an item. Removing an already removed item is a no-op."""
        try:
            self._item_path(item_id).unlink()
            logger.debug(f"Removed queue item {item_id}")
        except FileNotFoundError:
            pass

    def record_failure(self, item: QueueItem) -> QueueItem:
        """Increment an item's retry count and persist it.

        Items that were already removed are not written back.
        """
        item.retry_count += 1
        if not self._item_path(item.id).exists():
            logger.debug(f"Queue item {item.id} already removed, not recording failure")
            return item
        self._write(item)
        return item

    @staticmethod
    def should_discard(item: QueueItem) -> bool:
        return item.retry_count >= DISCARD_THRESHOLD

    def __len__(self) -> int:
        if not self.queue_dir.is_dir():
            return 0
        return sum(1 for _ in self.queue_dir.glob("*.json"))
