"""Server — one hackable host's security, money and suppression state.

Security
--------
``hack_difficulty`` is the host's security level.  Every mutation ends in
``cap_difficulty()`` so that ``1 <= min_difficulty <= hack_difficulty <=
100`` always holds.  ``fortify()`` raises it, ``weaken()`` lowers it.

Suppression
-----------
Attackers running suppress threads register them with
``add_suppression_threads(hostname, threads)`` and deregister the exact
same pair with ``remove_suppression_threads``.  While at least one
contribution is registered a SuppressionClock ticks every
``settings.suppression_tick_interval`` seconds and raises ``suppression``
by ``elapsed / weaken_time / 2`` (capped at 1.5).  Suppression of 1 or
more blocks fortify entirely; below 1 it blocks that fraction.  Each
fortify also burns suppression off in proportion to the incoming
security and inversely to the attackers' combined strength
(``get_suppression_factor()``).

Invariant: the ledger is non-empty iff the clock is Running.  The clock
starts on the first contribution and stops when the last one leaves, or
when the host is destroyed.

Concurrency
-----------
All public mutators and the clock tick take the server's RLock, so a tick
delivered on a scheduler thread is atomic relative to every other
operation.  With ManualScheduler everything runs on the caller's thread
and the lock is uncontended.

Conditions such as a double-started clock, an unknown contribution or an
unresolvable attacker are reported on ``self.diagnostics`` and never
raised.
"""

from __future__ import annotations

import math
import random
import string
import threading

from loguru import logger

from .clock import SuppressionClock
from .config import Settings, settings as default_settings
from .diagnostics import DiagnosticKind, DiagnosticLog
from .hacking import PlayerState, WeakenTimeFn, weaken_time
from .ledger import Contribution, SuppressionLedger
from .registry import HostRegistry
from .scheduling import Scheduler, ThreadScheduler

# Hard security ceiling; realistically only reached by someone tampering
MAX_DIFFICULTY = 100

# Suppression can bank above 1 (full block) up to this cap
MAX_SUPPRESSION = 1.5

# Above this max-money, growth multipliers are compressed logarithmically
MONEY_SOFT_CAP = 10e12
MONEY_LOG_BASE = 8

# money_max = MONEY_MAX_RATIO * starting money
MONEY_MAX_RATIO = 25

# Hostnames with this prefix belong to hacknet servers
RESERVED_HOSTNAME_PREFIX = "hacknet-node-"

_default_scheduler: ThreadScheduler | None = None
_default_scheduler_lock = threading.Lock()


def _get_default_scheduler() -> ThreadScheduler:
    global _default_scheduler
    with _default_scheduler_lock:
        if _default_scheduler is None:
            _default_scheduler = ThreadScheduler(name="suppression")
        return _default_scheduler


def create_random_string(length: int) -> str:
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


class Server:
    """A single hackable host."""

    def __init__(
        self,
        hostname: str = "",
        *,
        hack_difficulty: float | None = None,
        money_available: float | None = None,
        required_hacking_skill: int = 1,
        server_growth: float = 1,
        cpu_cores: int = 1,
        max_ram: float = 0,
        purchased_by_player: bool = False,
        registry: HostRegistry | None = None,
        scheduler: Scheduler | None = None,
        settings: Settings | None = None,
        player: PlayerState | None = None,
        weaken_time_fn: WeakenTimeFn | None = None,
        diagnostics: DiagnosticLog | None = None,
    ) -> None:
        self.settings = settings if settings is not None else default_settings

        if hostname.startswith(RESERVED_HOSTNAME_PREFIX):
            hostname = create_random_string(10)
        self.hostname = hostname

        self.cpu_cores = cpu_cores
        self.max_ram = max_ram
        self.purchased_by_player = purchased_by_player
        self.required_hacking_skill = required_hacking_skill
        self.server_growth = server_growth

        # Money
        if money_available is not None:
            self.money_available = money_available * self.settings.starting_money_multiplier
        else:
            self.money_available = 0.0
        self.money_max = (
            MONEY_MAX_RATIO * self.money_available * self.settings.max_money_multiplier
        )

        # Security.  base_difficulty is the starting level and never changes.
        if hack_difficulty is not None:
            self.hack_difficulty = hack_difficulty * self.settings.starting_security_multiplier
        else:
            self.hack_difficulty = 1.0
        # Halves round up
        self.min_difficulty = min(
            max(1, math.floor(self.hack_difficulty / 3 + 0.5)), MAX_DIFFICULTY,
        )
        self.cap_difficulty()
        self.base_difficulty = self.hack_difficulty

        # Suppression
        self.suppression = 0.0
        self._ledger = SuppressionLedger()
        self._clock = SuppressionClock(
            scheduler if scheduler is not None else _get_default_scheduler(),
            interval=self.settings.suppression_tick_interval,
            name=self.hostname,
        )
        self._destroyed = False

        # Collaborators
        self._registry = registry
        self.player = player if player is not None else PlayerState()
        self._weaken_time_fn = weaken_time_fn if weaken_time_fn is not None else weaken_time
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Server({self.hostname!r}, difficulty={self.hack_difficulty:.2f}, "
            f"suppression={self.suppression:.3f}, threads={len(self._ledger)})"
        )

    # -- Read access ---------------------------------------------------------

    @property
    def active_suppression_threads(self) -> list[Contribution]:
        with self._lock:
            return list(self._ledger)

    @property
    def is_suppressed(self) -> bool:
        return not self._ledger.is_empty

    @property
    def suppression_clock(self) -> SuppressionClock:
        return self._clock

    @property
    def suppression_interval_id(self) -> int:
        """Live clock handle, 0 when stopped."""
        return self._clock.handle or 0

    @property
    def suppression_last_update_time(self) -> float:
        return self._clock.last_update

    @property
    def registry(self) -> HostRegistry | None:
        return self._registry

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def suppression_state(self) -> dict:
        with self._lock:
            return {
                "hostname": self.hostname,
                "suppression": self.suppression,
                "clock": "running" if self._clock.is_running else "stopped",
                "handle": self.suppression_interval_id,
                "threads": self._ledger.to_list(),
                "last_update": self._clock.last_update,
            }

    # -- Security ------------------------------------------------------------

    def cap_difficulty(self) -> None:
        """Clamp hack_difficulty into [max(1, min_difficulty), 100]."""
        if self.hack_difficulty < self.min_difficulty:
            self.hack_difficulty = self.min_difficulty
        if self.hack_difficulty < 1:
            self.hack_difficulty = 1
        if self.hack_difficulty > MAX_DIFFICULTY:
            self.hack_difficulty = MAX_DIFFICULTY

    def change_minimum_security(self, n: float, perc: bool = False) -> None:
        """Scale (``perc``) or shift min_difficulty by *n*, kept within [1, 100].

        hack_difficulty is not re-clamped here; the next security change
        does that.
        """
        with self._lock:
            if perc:
                self.min_difficulty *= n
            else:
                self.min_difficulty += n
            self.min_difficulty = min(max(1, self.min_difficulty), MAX_DIFFICULTY)

    def change_maximum_money(self, n: float) -> None:
        """Multiply money_max by *n*, compressing the multiplier above the soft cap.

        Above MONEY_SOFT_CAP the effective multiplier is
        ``1 + (n - 1) / log8(money_max - MONEY_SOFT_CAP)``.  At or just
        above the cap the log is zero or negative and the multiplier is
        applied uncompressed.
        """
        with self._lock:
            if self.money_max > MONEY_SOFT_CAP:
                above_cap = math.log(self.money_max - MONEY_SOFT_CAP, MONEY_LOG_BASE)
                if above_cap > 0:
                    n = 1 + (n - 1) / above_cap
            self.money_max *= n

    def fortify(self, amt: float) -> None:
        """Raise security by *amt*, dampened by and burning off suppression."""
        with self._lock:
            self.hack_difficulty += amt * (1 - min(self.suppression, 1))
            self.cap_difficulty()

            if self.suppression > 0:
                factor = self.get_suppression_factor()
                if factor <= 0:
                    self.diagnostics.report(
                        DiagnosticKind.NUMERIC_EDGE, self.hostname,
                        f"Suppression factor is {factor}; dropping suppression "
                        f"{self.suppression:.3f} to 0",
                        factor=factor, suppression=self.suppression,
                    )
                    self.suppression = 0.0
                else:
                    self.suppression -= (amt / factor) / 2
                    self.suppression = max(self.suppression, 0.0)

    def weaken(self, amt: float) -> None:
        with self._lock:
            self.hack_difficulty -= amt * self.settings.weaken_rate_multiplier
            self.cap_difficulty()

    # -- Suppression ---------------------------------------------------------

    def suppress(self, amt: float) -> None:
        """Raise suppression by *amt*, capped at 1.5.  *amt* must not be negative."""
        with self._lock:
            self.suppression += amt
            self.suppression = min(self.suppression, MAX_SUPPRESSION)

    def add_suppression_threads(self, hostname: str, threads: int) -> bool:
        """Register *threads* suppress threads running from *hostname*.

        Starts the suppression clock when this is the first contribution.
        Returns False (and reports) if the server has been destroyed.
        """
        if isinstance(threads, bool) or not isinstance(threads, int) or threads <= 0:
            raise ValueError(f"threads must be a positive int, got {threads!r}")
        with self._lock:
            if self._destroyed:
                self.diagnostics.report(
                    DiagnosticKind.INVARIANT_VIOLATION, self.hostname,
                    f"Suppression from {hostname} ({threads} threads) on destroyed server",
                    source=hostname, threads=threads,
                )
                return False

            if self._ledger.is_empty:
                if self._clock.is_running:
                    self.diagnostics.report(
                        DiagnosticKind.INVARIANT_VIOLATION, self.hostname,
                        f"New suppression detected on {self.hostname} but suppression "
                        f"clock is already running (handle {self._clock.handle})",
                        handle=self._clock.handle,
                    )
                    self._clock.stop()
                self._clock.start(self.do_suppression_update)

            self._ledger.add(hostname, threads)
            return True

    def remove_suppression_threads(self, hostname: str, threads: int) -> bool:
        """Deregister the first contribution matching (*hostname*, *threads*) exactly.

        Returns False (and reports) when the ledger is empty or has no such
        entry.  Stops the clock when the last contribution leaves.
        """
        with self._lock:
            if self._ledger.is_empty:
                self.diagnostics.report(
                    DiagnosticKind.INVARIANT_VIOLATION, self.hostname,
                    f"Attempting to remove suppression threads from {self.hostname} where "
                    f"server hostname is {hostname} and threads is {threads}, but there "
                    f"are no active suppression threads",
                    source=hostname, threads=threads,
                )
                return False

            if not self._ledger.remove(hostname, threads):
                self.diagnostics.report(
                    DiagnosticKind.INVARIANT_VIOLATION, self.hostname,
                    f"Unable to find suppression item for {self.hostname} where server "
                    f"hostname is {hostname} and threads is {threads}",
                    source=hostname, threads=threads,
                )
                return False

            if self._ledger.is_empty:
                if not self._clock.stop():
                    self.diagnostics.report(
                        DiagnosticKind.INVARIANT_VIOLATION, self.hostname,
                        f"Suppression threads on {self.hostname} have been reduced to 0 "
                        f"but the suppression clock was not running",
                    )
            return True

    def do_suppression_update(self) -> None:
        """Clock tick: grow suppression by elapsed time over weaken time."""
        with self._lock:
            # A tick already in flight when the clock stopped
            if not self._clock.is_running:
                return
            elapsed = self._clock.mark()
            weaken_seconds = self._weaken_time_fn(self, self.player)
            if weaken_seconds <= 0:
                self.diagnostics.report(
                    DiagnosticKind.NUMERIC_EDGE, self.hostname,
                    f"Weaken time is {weaken_seconds}; skipping suppression update",
                    weaken_time=weaken_seconds,
                )
                return
            self.suppress((elapsed / weaken_seconds) / 2)

    def get_suppression_factor(self) -> float:
        """How strongly active attackers hold suppression up.

        fortify() burns ``(security increase / factor) / 2`` suppression.
        Threads from hosts with more cores count for more.  Contributions
        whose host no longer resolves are skipped (not removed).  Returns 0
        when nothing resolves.
        """
        with self._lock:
            resolve = self._registry.resolve if self._registry is not None else _resolve_nothing
            effective, unresolved = self._ledger.effective_threads(resolve)
            for entry in unresolved:
                self.diagnostics.report(
                    DiagnosticKind.UNRESOLVED_REFERENCE, self.hostname,
                    f"Unable to resolve server for suppression item "
                    f"{entry.source_id}:{entry.threads}",
                    source=entry.source_id, threads=entry.threads,
                )
            return (
                self.settings.base_weaken_amount
                * effective
                * self.settings.weaken_rate_multiplier
            )

    # -- Lifecycle -----------------------------------------------------------

    def destroy(self) -> None:
        """Stop suppression updates for a sold or deleted server.

        Drops every contribution so the clock cannot be left pointing at a
        dead host; later add/remove calls are reported no-ops.
        """
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            stopped = self._clock.stop()
            dropped = len(self._ledger)
            self._ledger.clear()
        logger.info(
            f"Server {self.hostname} destroyed "
            f"(clock {'stopped' if stopped else 'idle'}, {dropped} contributions dropped)"
        )

    # -- Persistence ---------------------------------------------------------

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "hostname": self.hostname,
                "cpu_cores": self.cpu_cores,
                "max_ram": self.max_ram,
                "purchased_by_player": self.purchased_by_player,
                "required_hacking_skill": self.required_hacking_skill,
                "server_growth": self.server_growth,
                "base_difficulty": self.base_difficulty,
                "hack_difficulty": self.hack_difficulty,
                "min_difficulty": self.min_difficulty,
                "money_available": self.money_available,
                "money_max": self.money_max,
                "suppression": self.suppression,
                "active_suppression_threads": self._ledger.to_list(),
                "suppression_interval_id": self.suppression_interval_id,
                "suppression_last_update_time": self.suppression_last_update_time,
            }

    @classmethod
    def from_dict(cls, data: dict, **collaborators) -> Server:
        """Rebuild a server from ``to_dict()`` output.

        Loaded servers are never actively suppressed: any saved
        contributions, clock handle or update time in *data* are ignored.
        *collaborators* are passed to the constructor (registry,
        scheduler, settings, player, weaken_time_fn, diagnostics).
        """
        server = cls(
            data.get("hostname", ""),
            cpu_cores=data.get("cpu_cores", 1),
            max_ram=data.get("max_ram", 0),
            purchased_by_player=data.get("purchased_by_player", False),
            required_hacking_skill=data.get("required_hacking_skill", 1),
            server_growth=data.get("server_growth", 1),
            **collaborators,
        )
        # Stored values are post-multiplier; assign directly.  The saved
        # hostname is kept even when it carries the reserved prefix.
        server.hostname = server.suppression_clock.name = data.get("hostname", "")
        server.base_difficulty = data.get("base_difficulty", 1.0)
        server.hack_difficulty = data.get("hack_difficulty", 1.0)
        server.min_difficulty = min(max(1, data.get("min_difficulty", 1)), MAX_DIFFICULTY)
        server.money_available = data.get("money_available", 0.0)
        server.money_max = data.get("money_max", 0.0)
        server.suppression = min(max(data.get("suppression", 0.0), 0.0), MAX_SUPPRESSION)
        server.cap_difficulty()
        return server


def _resolve_nothing(hostname: str) -> None:
    return None
