"""Periodic scheduling facilities that drive the suppression clock.

A scheduler runs ``callback()`` every ``period`` seconds until the handle
it returned is cancelled.  Three implementations share one small protocol:

  ManualScheduler   -- virtual time, advanced explicitly.  Fully
                       deterministic; the cooperative single-thread model
                       a simulation loop (or a test) drives by hand.
  ThreadScheduler   -- one daemon thread per handle, waiting on a
                       threading.Event between calls.  Wall-clock time.
  AsyncioScheduler  -- one task per handle on a running event loop.

Each scheduler also owns the time source (``now()``) for whatever it
drives, so a clock ticked by ManualScheduler measures virtual seconds and
a clock ticked by ThreadScheduler measures monotonic seconds.

Handles are opaque positive ints.  Cancelling an unknown or already
cancelled handle does nothing.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from loguru import logger


Callback = Callable[[], None]


@runtime_checkable
class Scheduler(Protocol):
    def now(self) -> float: ...

    def schedule(self, callback: Callback, period: float) -> int: ...

    def cancel(self, handle: int) -> None: ...


def _check_period(period: float) -> None:
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")


# ============================================================================
# ManualScheduler
# ============================================================================

@dataclass
class _ManualEntry:
    callback: Callback
    period: float
    next_due: float


class ManualScheduler:
    """Virtual-time scheduler advanced by the caller."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._entries: dict[int, _ManualEntry] = {}
        self._ids = itertools.count(1)

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return len(self._entries)

    def schedule(self, callback: Callback, period: float) -> int:
        _check_period(period)
        handle = next(self._ids)
        self._entries[handle] = _ManualEntry(callback, period, self._now + period)
        return handle

    def cancel(self, handle: int) -> None:
        self._entries.pop(handle, None)

    def is_scheduled(self, handle: int) -> bool:
        return handle in self._entries

    def advance(self, seconds: float) -> int:
        """Move virtual time forward, firing every callback that falls due.

        Callbacks run one at a time in due order (ties by handle), with
        ``now()`` set to their due time.  A callback may cancel its own or
        any other handle, or schedule new ones.  Returns the number of
        callbacks fired.  Time never moves backwards.
        """
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative duration, got {seconds}")
        target = self._now + seconds
        fired = 0
        while True:
            due = [
                (e.next_due, h) for h, e in self._entries.items()
                if e.next_due <= target
            ]
            if not due:
                break
            next_due, handle = min(due)
            entry = self._entries[handle]
            self._now = next_due
            entry.next_due += entry.period
            entry.callback()
            fired += 1
        self._now = target
        return fired


# ============================================================================
# ThreadScheduler
# ============================================================================

class ThreadScheduler:
    """Runs each periodic callback on its own daemon thread."""

    def __init__(self, name: str = "periodic") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._threads: dict[int, tuple[threading.Thread, threading.Event]] = {}

    def now(self) -> float:
        return time.monotonic()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._threads)

    def schedule(self, callback: Callback, period: float) -> int:
        _check_period(period)
        stop = threading.Event()
        with self._lock:
            handle = next(self._ids)
            thread = threading.Thread(
                target=self._loop, args=(callback, period, stop),
                name=f"{self._name}-{handle}", daemon=True,
            )
            self._threads[handle] = (thread, stop)
        thread.start()
        return handle

    def cancel(self, handle: int) -> None:
        """Signal the handle's thread to exit.

        Does not join: the caller may hold a lock that an in-flight
        callback is waiting on.  A callback already running finishes and
        no further calls start.
        """
        with self._lock:
            entry = self._threads.pop(handle, None)
        if entry is not None:
            entry[1].set()

    def shutdown(self, timeout: float = 2.0) -> None:
        """Cancel every handle and wait for the threads to exit."""
        with self._lock:
            entries = list(self._threads.values())
            self._threads.clear()
        for _, stop in entries:
            stop.set()
        for thread, _ in entries:
            # A callback calling shutdown() must not join itself
            if thread is not threading.current_thread():
                thread.join(timeout=timeout)

    @staticmethod
    def _loop(callback: Callback, period: float, stop: threading.Event) -> None:
        while not stop.wait(period):
            try:
                callback()
            except Exception:
                logger.exception("Periodic callback failed")


# ============================================================================
# AsyncioScheduler
# ============================================================================

class AsyncioScheduler:
    """Schedules periodic callbacks as tasks on an asyncio event loop.

    Must be used from the loop's own thread.  With no ``loop`` argument the
    currently running loop is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._ids = itertools.count(1)
        self._tasks: dict[int, asyncio.Task] = {}

    def now(self) -> float:
        return self._loop.time()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, callback: Callback, period: float) -> int:
        _check_period(period)
        handle = next(self._ids)
        self._tasks[handle] = self._loop.create_task(self._run(callback, period))
        return handle

    def cancel(self, handle: int) -> None:
        task = self._tasks.pop(handle, None)
        if task is not None:
            task.cancel()

    def shutdown(self) -> None:
        for handle in list(self._tasks):
            self.cancel(handle)

    @staticmethod
    async def _run(callback: Callback, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            try:
                callback()
            except Exception:
                logger.exception("Periodic callback failed")
