"""Two-tier deferred task scheduling.

Background work waits for the host to go idle (bounded by a maximum delay so
it is never starved); immediate work runs on its own worker as soon as the
caller returns. Neither tier ever runs a task synchronously in the caller.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from .config import SCHEDULER_FRAME_INTERVAL_SECONDS, SCHEDULER_MAX_DELAY_SECONDS
from .errors import SchedulerClosedError

Task = Callable[[], Any]


class TaskPriority(str, Enum):
    BACKGROUND = "background"
    IMMEDIATE = "immediate"


class IdleMonitor:
    """Tracks whether latency-sensitive host work is currently running.

    A render or interaction loop wraps each unit of work in :meth:`busy`; the
    host counts as idle whenever no busy section is open.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._busy_sections = 0

    @contextmanager
    def busy(self) -> Iterator[None]:
        with self._cond:
            self._busy_sections += 1
        try:
            yield
        finally:
            with self._cond:
                self._busy_sections = max(0, self._busy_sections - 1)
                if self._busy_sections == 0:
                    self._cond.notify_all()

    def is_idle(self) -> bool:
        with self._cond:
            return self._busy_sections == 0

    def wait_for_idle(self, timeout: float | None = None) -> bool:
        """Block until the host is idle; return False if ``timeout`` elapsed first."""

        with self._cond:
            return self._cond.wait_for(lambda: self._busy_sections == 0, timeout)


class DeferredTaskScheduler:
    """Run tasks later, either in host idle time or at the next opportunity."""

    def __init__(
        self,
        idle_monitor: Optional[IdleMonitor] = None,
        *,
        frame_interval_s: float = SCHEDULER_FRAME_INTERVAL_SECONDS,
        max_delay_s: float = SCHEDULER_MAX_DELAY_SECONDS,
    ) -> None:
        if frame_interval_s < 0:
            raise ValueError("frame_interval_s must be >= 0")
        if max_delay_s < 0:
            raise ValueError("max_delay_s must be >= 0")
        self._idle = idle_monitor
        self._frame_interval = frame_interval_s
        self._max_delay = max_delay_s
        self._log = logging.getLogger(self.__class__.__name__)
        self._closed = False
        self._state_lock = threading.Lock()
        self._background = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="route-tracker-background"
        )
        self._immediate = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="route-tracker-immediate"
        )
        if idle_monitor is None:
            self._log.debug(
                "No idle monitor available; background tasks run as soon as possible"
            )

    @property
    def idle_monitor(self) -> Optional[IdleMonitor]:
        return self._idle

    def schedule(self, task: Task, priority: TaskPriority) -> "Future[Any]":
        if priority is TaskPriority.IMMEDIATE:
            return self.schedule_immediate(task)
        return self.schedule_background(task)

    def schedule_background(self, task: Task) -> "Future[Any]":
        """Run ``task`` once the host is idle, or after the maximum delay."""

        return self._submit(self._background, self._run_when_idle, task)

    def schedule_immediate(self, task: Task) -> "Future[Any]":
        """Run ``task`` as soon as the caller unwinds, skipping idle detection."""

        return self._submit(self._immediate, self._run, task)

    def shutdown(self, wait: bool = True) -> None:
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        self._background.shutdown(wait=wait)
        self._immediate.shutdown(wait=wait)
        self._log.debug("Scheduler shut down (wait=%s)", wait)

    def __enter__(self) -> "DeferredTaskScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)

    def _submit(
        self,
        executor: ThreadPoolExecutor,
        runner: Callable[[Task], Any],
        task: Task,
    ) -> "Future[Any]":
        if not callable(task):
            raise TypeError("task must be callable")
        with self._state_lock:
            if self._closed:
                raise SchedulerClosedError("Scheduler has been shut down")
            return executor.submit(runner, task)

    def _run_when_idle(self, task: Task) -> Any:
        if self._idle is not None:
            self._await_idle(self._idle)
        return self._run(task)

    def _await_idle(self, idle: IdleMonitor) -> None:
        if idle.wait_for_idle(self._frame_interval):
            return
        # No idle time this frame: try again from the next one, bounded by
        # the maximum delay.
        deadline = time.monotonic() + self._max_delay
        time.sleep(min(self._frame_interval, self._max_delay))
        remaining = max(0.0, deadline - time.monotonic())
        if not idle.wait_for_idle(remaining):
            self._log.debug(
                "Host busy for more than %.3fs; running deferred task anyway",
                self._max_delay,
            )

    def _run(self, task: Task) -> Any:
        try:
            return task()
        except Exception as exc:
            self._log.error("Deferred task %r failed: %s", task, exc, exc_info=True)
            raise


__all__ = ["DeferredTaskScheduler", "IdleMonitor", "Task", "TaskPriority"]
