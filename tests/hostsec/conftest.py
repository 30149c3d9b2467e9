"""Shared fixtures for hostsec tests."""

from __future__ import annotations

import pytest

from hostsec.config import Settings
from hostsec.registry import HostRegistry
from hostsec.scheduling import ManualScheduler
from hostsec.server import Server

# Fixed weaken time so tick math is easy to follow
WEAKEN_SECONDS = 10.0


def fixed_weaken_time(server, player) -> float:
    return WEAKEN_SECONDS


@pytest.fixture
def tunables() -> Settings:
    return Settings(
        _env_file=None,
        weaken_rate_multiplier=1.0,
        base_weaken_amount=0.05,
        starting_money_multiplier=1.0,
        starting_security_multiplier=1.0,
        max_money_multiplier=1.0,
        suppression_tick_interval=0.2,
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def registry() -> HostRegistry:
    return HostRegistry()


@pytest.fixture
def make_server(registry, scheduler, tunables):
    """Factory for registered servers wired to the manual scheduler."""

    def _make(hostname: str = "target", **kwargs) -> Server:
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("scheduler", scheduler)
        kwargs.setdefault("settings", tunables)
        kwargs.setdefault("weaken_time_fn", fixed_weaken_time)
        server = Server(hostname, **kwargs)
        registry.add(server)
        return server

    return _make
