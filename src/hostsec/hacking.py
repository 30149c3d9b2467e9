"""Hacking-time formulas.

The suppression clock needs to know how long a weaken against a host
would take for the current player: hosts that weaken slowly gain
suppression slowly.  These are the game's standard formulas; callers
with their own balance can pass any ``(server, player) -> seconds``
callable to ``Server(weaken_time_fn=...)`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .server import Server

# Formula constants
BASE_DIFFICULTY = 500
BASE_SKILL = 50
DIFFICULTY_FACTOR = 2.5
HACK_TIME_MULTIPLIER = 5
GROW_TIME_MULTIPLIER = 3.2
WEAKEN_TIME_MULTIPLIER = 4


@dataclass
class PlayerState:
    """The slice of player state the time formulas read."""

    hacking: int = 1
    hacking_speed_mult: float = 1.0
    intelligence: float = 0


WeakenTimeFn = Callable[["Server", PlayerState], float]


def intelligence_bonus(intelligence: float, weight: float = 1) -> float:
    return 1 + (weight * intelligence ** 0.8) / 600


def hacking_time(server: Server, player: PlayerState) -> float:
    """Seconds for a single hack() against *server*."""
    difficulty_mult = server.required_hacking_skill * server.hack_difficulty
    skill_factor = DIFFICULTY_FACTOR * difficulty_mult + BASE_DIFFICULTY
    skill_factor /= player.hacking + BASE_SKILL
    return (HACK_TIME_MULTIPLIER * skill_factor) / (
        player.hacking_speed_mult * intelligence_bonus(player.intelligence, 1)
    )


def grow_time(server: Server, player: PlayerState) -> float:
    return GROW_TIME_MULTIPLIER * hacking_time(server, player)


def weaken_time(server: Server, player: PlayerState) -> float:
    return WEAKEN_TIME_MULTIPLIER * hacking_time(server, player)
