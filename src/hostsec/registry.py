"""HostRegistry — hostname lookup shared by every host's suppression math.

Hosts refer to each other only by hostname.  A contribution on host B
from attacker A stores ``"A"``, never A itself; B resolves the name here
each time it needs A's core count, so a host that has been sold or
deleted simply stops resolving.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class HostRecord(Protocol):
    """What suppression needs to know about an attacking host."""

    hostname: str
    cpu_cores: int


class HostNotFoundError(KeyError):
    """Raised by HostRegistry.get() for an unknown hostname."""


class HostRegistry:
    """Thread-safe registry of hosts keyed by hostname."""

    def __init__(self) -> None:
        self._hosts: dict[str, HostRecord] = {}
        self._lock = threading.Lock()

    def add(self, host: HostRecord) -> None:
        with self._lock:
            self._hosts[host.hostname] = host

    def remove(self, hostname: str) -> HostRecord | None:
        with self._lock:
            return self._hosts.pop(hostname, None)

    def resolve(self, hostname: str) -> HostRecord | None:
        with self._lock:
            return self._hosts.get(hostname)

    def get(self, hostname: str) -> HostRecord:
        host = self.resolve(hostname)
        if host is None:
            raise HostNotFoundError(hostname)
        return host

    def all(self) -> list[HostRecord]:
        with self._lock:
            return list(self._hosts.values())

    def __contains__(self, hostname: object) -> bool:
        with self._lock:
            return hostname in self._hosts

    def __len__(self) -> int:
        with self._lock:
            return len(self._hosts)
