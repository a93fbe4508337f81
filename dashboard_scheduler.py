"""
Named periodic tasks driven by one background loop.

``run_pending`` is the whole scheduling rule and takes an explicit ``now`` so
tests can step time by hand; ``start``/``stop`` wrap it in a daemon thread the
same way the page's background feeds are run.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import dashboard_config as cfg
from dashboard_logger import get_logger

log = get_logger("scheduler")


@dataclass
class PeriodicTask:
    name: str
    interval_s: float
    fn: Callable[[], object]
    next_due: Optional[float] = None
    runs: int = 0


class Scheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 resolution_s: float = cfg.SCHEDULER_RESOLUTION_S):
        self.clock = clock
        self.resolution_s = resolution_s
        self._tasks: Dict[str, PeriodicTask] = {}
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def add(self, name: str, interval_s: float, fn: Callable[[], object]) -> PeriodicTask:
        if name in self._tasks:
            raise ValueError(f"task {name!r} already scheduled")
        if interval_s <= 0:
            raise ValueError("interval must be positive")
        task = PeriodicTask(name=name, interval_s=interval_s, fn=fn)
        self._tasks[name] = task
        return task

    def task(self, name: str) -> PeriodicTask:
        return self._tasks[name]

    @property
    def tasks(self) -> List[PeriodicTask]:
        return list(self._tasks.values())

    def run_pending(self, now: Optional[float] = None) -> List[str]:
        """Fire every due task once; returns the names that fired."""
        if now is None:
            now = self.clock()
        fired = []
        for task in self._tasks.values():
            if task.next_due is not None and now < task.next_due:
                continue
            # Fixed cadence; missed ticks are skipped, not replayed
            if task.next_due is None:
                task.next_due = now + task.interval_s
            else:
                while task.next_due <= now:
                    task.next_due += task.interval_s
            task.runs += 1
            fired.append(task.name)
            try:
                task.fn()
            except Exception:
                log.exception("task %s failed", task.name)
        return fired

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="dashboard-scheduler", daemon=True)
        self._thread.start()
        log.info("scheduler started: %s", ", ".join(
            f"{t.name}@{t.interval_s:g}s" for t in self._tasks.values()))

    def stop(self, timeout: float | None = 5.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        for task in self._tasks.values():
            task.next_due = None
        log.info("scheduler stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        while not self._stop.is_set():
            self.run_pending()
            self._stop.wait(self.resolution_s)
