"""Save and load servers as JSON.

Each server is wrapped in a ``{"ctor": "Server", "data": {...}}`` envelope
so a save file can later hold other record types.  Loading goes through
``Server.from_dict``, which never restores suppression contributions or
a running clock.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from loguru import logger

from .server import Server

_CONSTRUCTORS: dict[str, type[Server]] = {
    "Server": Server,
}


def to_envelope(server: Server) -> dict:
    return {"ctor": type(server).__name__, "data": server.to_dict()}


def from_envelope(envelope: dict, **collaborators) -> Server:
    ctor = envelope.get("ctor")
    cls = _CONSTRUCTORS.get(ctor)
    if cls is None:
        raise ValueError(f"Unknown ctor in save data: {ctor!r}")
    return cls.from_dict(envelope.get("data", {}), **collaborators)


def dumps_servers(servers: Iterable[Server], indent: int | None = None) -> str:
    return json.dumps([to_envelope(s) for s in servers], indent=indent)


def loads_servers(text: str, **collaborators) -> list[Server]:
    """Revive servers from ``dumps_servers`` output.

    When a ``registry`` collaborator is given every loaded server is added
    to it.
    """
    raw = json.loads(text)
    servers = [from_envelope(env, **collaborators) for env in raw]
    registry = collaborators.get("registry")
    if registry is not None:
        for server in servers:
            registry.add(server)
    return servers


def save_servers(path: Path, servers: Iterable[Server]) -> None:
    servers = list(servers)
    path.write_text(dumps_servers(servers, indent=2))
    logger.info(f"Saved {len(servers)} servers to {path}")


def load_servers(path: Path, **collaborators) -> list[Server]:
    servers = loads_servers(path.read_text(), **collaborators)
    logger.info(f"Loaded {len(servers)} servers from {path}")
    return servers
