"""SuppressionClock — the periodic updater behind a host's suppression.

Two states:

  Stopped -- no scheduled task, no last-update time.
  Running -- exactly one scheduled task (``handle``) plus the time of the
             last update, read from the driving scheduler's ``now()``.

The clock only owns the lifecycle and the timestamp.  What happens on a
tick is the owner's business: the callback passed to ``start()`` calls
``mark()`` to get the seconds elapsed since the previous update.

``start()`` on a Running clock is a programming error and raises; the
owning Server checks ``is_running`` first and reports the condition
before resetting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from loguru import logger

from .scheduling import Scheduler

# Default tick period in seconds
TICK_INTERVAL = 0.2


@dataclass(frozen=True)
class Stopped:
    """Clock is idle."""


@dataclass
class Running:
    """Clock has one live scheduled task."""

    handle: int
    last_update: float


ClockState = Union[Stopped, Running]

STOPPED = Stopped()


class SuppressionClock:
    """Owns at most one periodic task on a Scheduler."""

    def __init__(self, scheduler: Scheduler, interval: float = TICK_INTERVAL,
                 name: str = "") -> None:
        self._scheduler = scheduler
        self._interval = interval
        self.name = name
        self._state: ClockState = STOPPED

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def is_running(self) -> bool:
        return isinstance(self._state, Running)

    @property
    def handle(self) -> int | None:
        return self._state.handle if isinstance(self._state, Running) else None

    @property
    def last_update(self) -> float:
        """Time of the last update, or 0 when stopped."""
        return self._state.last_update if isinstance(self._state, Running) else 0.0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def start(self, callback: Callable[[], None]) -> int:
        if isinstance(self._state, Running):
            raise RuntimeError(f"suppression clock for {self.name} already running")
        now = self._scheduler.now()
        handle = self._scheduler.schedule(callback, self._interval)
        self._state = Running(handle=handle, last_update=now)
        logger.debug(f"Suppression clock started on {self.name} (handle {handle})")
        return handle

    def stop(self) -> bool:
        """Cancel the scheduled task.  Returns False if already stopped."""
        if not isinstance(self._state, Running):
            return False
        self._scheduler.cancel(self._state.handle)
        logger.debug(f"Suppression clock stopped on {self.name} (handle {self._state.handle})")
        self._state = STOPPED
        return True

    def mark(self) -> float:
        """Record an update now and return seconds since the previous one."""
        if not isinstance(self._state, Running):
            return 0.0
        now = self._scheduler.now()
        elapsed = now - self._state.last_update
        self._state.last_update = now
        return elapsed
