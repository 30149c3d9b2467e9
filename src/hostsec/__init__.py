"""hostsec — suppressible security model for simulated hackable hosts."""
from .clock import ClockState, Running, Stopped, SuppressionClock
from .config import Settings, settings
from .diagnostics import Diagnostic, DiagnosticKind, DiagnosticLog
from .hacking import PlayerState, grow_time, hacking_time, weaken_time
from .ledger import Contribution, SuppressionLedger
from .persistence import dumps_servers, load_servers, loads_servers, save_servers
from .registry import HostNotFoundError, HostRecord, HostRegistry
from .scheduling import AsyncioScheduler, ManualScheduler, Scheduler, ThreadScheduler
from .server import Server

__all__ = [
    "AsyncioScheduler",
    "ClockState",
    "Contribution",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticLog",
    "HostNotFoundError",
    "HostRecord",
    "HostRegistry",
    "ManualScheduler",
    "PlayerState",
    "Running",
    "Scheduler",
    "Server",
    "Settings",
    "Stopped",
    "SuppressionClock",
    "SuppressionLedger",
    "ThreadScheduler",
    "dumps_servers",
    "grow_time",
    "hacking_time",
    "load_servers",
    "loads_servers",
    "save_servers",
    "settings",
    "weaken_time",
]
