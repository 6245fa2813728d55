"""
Ledger Scheduling — Deferred Tasks
====================================
Fire-and-forget deferred callbacks with an explicit cancellation token.

A ScheduledTask runs its callback at most once. cancel() flips the token
before the callback starts; once the callback has started, cancel() is a
no-op and returns False. Callback failures are logged with exc_info and
kept on the task: a deferred step must never take down the thread that
happens to run it, and the committed data it acts on stays intact.

Schedulers:
- ThreadingScheduler: production, one daemon threading.Timer per task
- ManualScheduler:   tests, runs due tasks when the test asks
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Protocol

from core.time.clock import Clock

logger = logging.getLogger("ledger.scheduling")

TASK_PENDING = "PENDING"
TASK_DONE = "DONE"
TASK_CANCELLED = "CANCELLED"
TASK_FAILED = "FAILED"


class ScheduledTask:
    """Handle for one deferred callback."""

    def __init__(self, name: str, delay_seconds: float, callback: Callable[[], None]):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be non-negative.")
        self.task_id = uuid.uuid4()
        self.name = name
        self.delay_seconds = delay_seconds
        self._callback = callback
        self._lock = threading.Lock()
        self._status = TASK_PENDING
        self.error: Optional[BaseException] = None

    @property
    def status(self) -> str:
        return self._status

    @property
    def cancelled(self) -> bool:
        return self._status == TASK_CANCELLED

    @property
    def finished(self) -> bool:
        return self._status != TASK_PENDING

    def cancel(self) -> bool:
        """Cancel before the callback starts. Returns True if cancelled."""
        with self._lock:
            if self._status != TASK_PENDING:
                return False
            self._status = TASK_CANCELLED
        logger.info(f"Task cancelled: {self.name} ({self.task_id})")
        return True

    def run(self) -> None:
        with self._lock:
            if self._status != TASK_PENDING:
                return
            self._status = TASK_DONE

        try:
            self._callback()
        except Exception as exc:
            self._status = TASK_FAILED
            self.error = exc
            logger.error(
                f"Scheduled task {self.name} ({self.task_id}) failed: {exc}",
                exc_info=True,
            )


class Scheduler(Protocol):
    def schedule(
        self, delay_seconds: float, callback: Callable[[], None], *, name: str = "",
    ) -> ScheduledTask:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# THREADING SCHEDULER (production)
# ══════════════════════════════════════════════════════════════

class ThreadingScheduler:
    """Runs each task on a daemon threading.Timer. Never blocks the caller."""

    def __init__(self):
        self._lock = threading.Lock()
        self._timers: List[threading.Timer] = []

    def schedule(
        self, delay_seconds: float, callback: Callable[[], None], *, name: str = "",
    ) -> ScheduledTask:
        task = ScheduledTask(name or "task", delay_seconds, callback)
        timer = threading.Timer(delay_seconds, task.run)
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
        return task

    def shutdown(self) -> None:
        """Stop timers that have not fired yet."""
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()


# ══════════════════════════════════════════════════════════════
# MANUAL SCHEDULER (tests)
# ══════════════════════════════════════════════════════════════

class ManualScheduler:
    """
    Deterministic scheduler driven by a Clock.

    Tasks become due at clock.now_utc() + delay; run_due() runs every
    due task in scheduling order, run_all() ignores due times.
    """

    def __init__(self, clock: Clock):
        self._clock = clock
        self._queue: List[tuple[datetime, ScheduledTask]] = []

    def schedule(
        self, delay_seconds: float, callback: Callable[[], None], *, name: str = "",
    ) -> ScheduledTask:
        task = ScheduledTask(name or "task", delay_seconds, callback)
        due_at = self._clock.now_utc() + timedelta(seconds=delay_seconds)
        self._queue.append((due_at, task))
        return task

    @property
    def pending_count(self) -> int:
        return sum(1 for _, task in self._queue if not task.finished)

    def run_due(self) -> int:
        """Run tasks whose due time has passed. Returns how many ran."""
        now = self._clock.now_utc()
        due = [task for due_at, task in self._queue if due_at <= now]
        self._queue = [(d, t) for d, t in self._queue if d > now]
        return self._run(due)

    def run_all(self) -> int:
        tasks = [task for _, task in self._queue]
        self._queue = []
        return self._run(tasks)

    @staticmethod
    def _run(tasks: List[ScheduledTask]) -> int:
        ran = 0
        for task in tasks:
            if task.finished:
                continue
            task.run()
            ran += 1
        return ran
