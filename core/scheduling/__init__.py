"""
Ledger Scheduling — Public API
================================
Deferred, cancellable, non-blocking callbacks.
"""

from core.scheduling.tasks import (
    TASK_CANCELLED,
    TASK_DONE,
    TASK_FAILED,
    TASK_PENDING,
    ManualScheduler,
    ScheduledTask,
    Scheduler,
    ThreadingScheduler,
)

__all__ = [
    "ScheduledTask",
    "Scheduler",
    "ThreadingScheduler",
    "ManualScheduler",
    "TASK_PENDING",
    "TASK_DONE",
    "TASK_CANCELLED",
    "TASK_FAILED",
]
