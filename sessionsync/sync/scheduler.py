"""Single-worker scheduler for periodic tasks and posted work.

All engine state (tracker, failure counters, queue directory) is mutated
only from the scheduler's worker thread. Other threads hand work over with
``submit()``. Tests drive tasks directly with ``run_pending(now)``.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass
class PeriodicTask:
    name: str
    interval: float
    fn: Callable[[], Any]
    next_run: float

    def due(self, now: float) -> bool:
        return now >= self.next_run


class Scheduler:
    """Runs periodic tasks and submitted callables on one worker thread.

    Stopping the scheduler is the only cancellation: a task already running
    finishes, nothing new starts.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._tasks: dict[str, PeriodicTask] = {}
        self._inbox: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_task(
        self,
        name: str,
        interval: float,
        fn: Callable[[], Any],
        run_immediately: bool = False,
    ) -> PeriodicTask:
        now = self._clock()
        task = PeriodicTask(
            name=name,
            interval=interval,
            fn=fn,
            next_run=now if run_immediately else now + interval,
        )
        self._tasks[name] = task
        return task

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn(*args)`` to run on the worker thread."""
        self._inbox.put((fn, args))

    def _call(self, name: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception(f"Scheduled job {name} failed")

    def run_pending(self, now: float | None = None) -> list[str]:
        """Run every task that is due at ``now``.

        Returns:
            Names of the tasks that ran
        """
        if now is None:
            now = self._clock()
        ran = []
        for task in list(self._tasks.values()):
            if not task.due(now):
                continue
            task.next_run = now + task.interval
            self._call(task.name, task.fn)
            ran.append(task.name)
        return ran

    def drain(self) -> int:
        """Run all submitted work without blocking. Returns the number run."""
        count = 0
        while True:
            try:
                item = self._inbox.get_nowait()
            except queue.Empty:
                return count
            if item is _STOP:
                continue
            fn, args = item
            self._call(getattr(fn, "__name__", "job"), fn, *args)
            count += 1

    def _seconds_until_due(self) -> float:
        if not self._tasks:
            return 1.0
        next_run = min(task.next_run for task in self._tasks.values())
        return max(0.0, next_run - self._clock())

    def _loop(self) -> None:
        while not self._stopping.is_set():
            try:
                item = self._inbox.get(timeout=self._seconds_until_due())
            except queue.Empty:
                item = None
            if item is _STOP:
                break
            if item is not None:
                fn, args = item
                self._call(getattr(fn, "__name__", "job"), fn, *args)
            self.run_pending()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(
            target=self._loop, name="sessionsync-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(f"Scheduler started with tasks: {', '.join(self._tasks)}")

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return
        self._stopping.set()
        self._inbox.put(_STOP)
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Scheduler stopped")
