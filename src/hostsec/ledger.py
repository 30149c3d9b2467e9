"""SuppressionLedger — the (source, threads) contributions on one host.

Entries are kept exactly as added.  A source that adds 3 threads and then
2 more owns two entries, and must remove them as 3 and 2; removing 5 in
one call matches nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator

from .registry import HostRecord

# Each extra core on the attacker adds 1/16 of a thread's weight
CORE_BONUS_DIVISOR = 16


@dataclass(frozen=True)
class Contribution:
    """Threads from one attacker run, identified by the attacker's hostname."""

    source_id: str
    threads: int

    def to_dict(self) -> dict:
        return {"hostname": self.source_id, "threads": self.threads}


def core_bonus(cpu_cores: int) -> float:
    return 1 + (cpu_cores - 1) / CORE_BONUS_DIVISOR


class SuppressionLedger:
    """Ordered multiset of contributions.  Not thread-safe; the owning
    Server serialises access."""

    def __init__(self) -> None:
        self._entries: list[Contribution] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[Contribution]:
        return iter(list(self._entries))

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def add(self, source_id: str, threads: int) -> Contribution:
        entry = Contribution(source_id, threads)
        self._entries.append(entry)
        return entry

    def index_of(self, source_id: str, threads: int) -> int:
        """Index of the first exact (source_id, threads) match, or -1."""
        for i, entry in enumerate(self._entries):
            if entry.source_id == source_id and entry.threads == threads:
                return i
        return -1

    def remove(self, source_id: str, threads: int) -> bool:
        i = self.index_of(source_id, threads)
        if i == -1:
            return False
        del self._entries[i]
        return True

    def clear(self) -> None:
        self._entries.clear()

    def total_threads(self) -> int:
        return sum(e.threads for e in self._entries)

    def effective_threads(
        self, resolve: Callable[[str], HostRecord | None],
    ) -> tuple[float, list[Contribution]]:
        """Core-weighted thread count over every resolvable contribution.

        Returns ``(effective_threads, unresolved)``.  Unresolved entries
        are skipped for this computation but stay in the ledger.
        """
        effective = 0.0
        unresolved: list[Contribution] = []
        for entry in self._entries:
            host = resolve(entry.source_id)
            if host is None:
                unresolved.append(entry)
                continue
            effective += core_bonus(host.cpu_cores) * entry.threads
        return effective, unresolved

    def to_list(self) -> list[dict]:
        return [e.to_dict() for e in self._entries]
