"""
Periodic task runner.

Runs registered callables on fixed intervals from a single background
thread. Used for the discovery pipeline, stalled-job cleanup and
opportunity refresh.

Key behaviors:
- Each task keeps its own next-due time
- A task that raises is logged and retried on its next interval
- stop() wakes the loop immediately
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class PeriodicTask:
    name: str
    interval_seconds: float
    func: Callable[[], Any]
    next_run: float = 0.0
    runs: int = 0
    failures: int = 0


class PeriodicRunner:
    """Background scheduler for interval tasks."""

    def __init__(
        self,
        tick_seconds: float = 1.0,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tick = tick_seconds
        self._monotonic = monotonic
        self._tasks: list[PeriodicTask] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def add_task(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Any],
        run_immediately: bool = False,
    ) -> PeriodicTask:
        first = self._monotonic() if run_immediately else self._monotonic() + interval_seconds
        task = PeriodicTask(name, interval_seconds, func, next_run=first)
        self._tasks.append(task)
        return task

    @property
    def tasks(self) -> list[PeriodicTask]:
        return list(self._tasks)

    def start(self) -> None:
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()
        self._running = True
        logger.info("Periodic runner started with %d tasks", len(self._tasks))

    def stop(self) -> None:
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Periodic runner stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called or the timeout passes. True when stopped."""
        return self._stop_event.wait(timeout)

    def run_due(self) -> int:
        """Run every task whose interval has elapsed. Returns the number run."""
        now = self._monotonic()
        ran = 0
        for task in self._tasks:
            if task.next_run > now:
                continue
            task.next_run = now + task.interval_seconds
            ran += 1
            try:
                task.func()
                task.runs += 1
            except Exception:
                task.failures += 1
                logger.exception("Periodic task %s failed", task.name)
        return ran

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_due()
            self._stop_event.wait(timeout=self._tick)
