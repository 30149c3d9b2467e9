"""Structured side channel for non-fatal conditions.

Host operations never raise for the conditions below; they report them
here and carry on.  Each report is also written to the loguru logger so a
running simulation still shows them on stderr, but tests assert against
``DiagnosticLog.entries`` instead of log text.

  INVARIANT_VIOLATION   clock already running on first contribution,
                        removal from an empty ledger, removal of a
                        contribution that was never added, clock stop
                        with no handle, contribution on a destroyed host
  UNRESOLVED_REFERENCE  a contribution's source host is not in the
                        registry (skipped for that computation only)
  NUMERIC_EDGE          non-positive suppression factor or weaken time
"""

from __future__ import annotations

import enum
import queue
import threading
import time
from dataclasses import dataclass, field

from loguru import logger


class DiagnosticKind(str, enum.Enum):
    INVARIANT_VIOLATION = "invariant_violation"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    NUMERIC_EDGE = "numeric_edge"


# Log level used for each kind
_LEVELS = {
    DiagnosticKind.INVARIANT_VIOLATION: "ERROR",
    DiagnosticKind.UNRESOLVED_REFERENCE: "WARNING",
    DiagnosticKind.NUMERIC_EDGE: "WARNING",
}


@dataclass
class Diagnostic:
    """A single reported condition."""

    kind: DiagnosticKind
    hostname: str
    message: str
    context: dict = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "hostname": self.hostname,
            "message": self.message,
            "context": dict(self.context),
            "timestamp": self.timestamp,
        }


class DiagnosticLog:
    """Bounded record of diagnostics plus queue subscribers."""

    MAX_ENTRIES = 500

    def __init__(self, max_entries: int | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: list[Diagnostic] = []
        self._subscribers: list[queue.Queue] = []
        if max_entries is not None:
            self.MAX_ENTRIES = max_entries

    @property
    def entries(self) -> list[Diagnostic]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        with self._lock:
            return [d for d in self._entries if d.kind == kind]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def report(
        self,
        kind: DiagnosticKind,
        hostname: str,
        message: str,
        **context,
    ) -> Diagnostic:
        """Record a diagnostic, log it, and fan it out to subscribers."""
        diag = Diagnostic(kind=kind, hostname=hostname, message=message, context=context)
        logger.log(_LEVELS[kind], f"[{hostname}] {message}")
        with self._lock:
            self._entries.append(diag)
            if len(self._entries) > self.MAX_ENTRIES:
                del self._entries[: len(self._entries) - self.MAX_ENTRIES]
            for q in self._subscribers:
                try:
                    q.put_nowait(diag)
                except queue.Full:
                    # Drop oldest so the newest report is always delivered
                    try:
                        q.get_nowait()
                    except queue.Empty:
                        pass
                    try:
                        q.put_nowait(diag)
                    except queue.Full:
                        pass
        return diag

    def subscribe(self, maxsize: int = 100) -> queue.Queue:
        """Return a queue that receives every diagnostic reported from now on."""
        q: queue.Queue = queue.Queue(maxsize=maxsize)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            try:
                self._subscribers.remove(q)
            except ValueError:
                pass
