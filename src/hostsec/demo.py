"""Drive one host through a scripted suppression attack and print a trace.

Usage:
    hostsec-demo [--seconds 30] [--threads 20] [--cores 4]
                 [--fortify 0.5] [--realtime]

Two attackers register suppress threads against a target, the target is
fortified once per simulated second, then the attackers leave.  With
``--realtime`` the clock runs on a ThreadScheduler in wall time; otherwise
time is simulated with a ManualScheduler and the run is instant.
"""

import argparse
import sys
import time

from loguru import logger

from . import (
    HostRegistry,
    ManualScheduler,
    PlayerState,
    Server,
    ThreadScheduler,
    dumps_servers,
    loads_servers,
    settings,
)


def build_world(scheduler, cores: int) -> tuple[HostRegistry, Server, list[Server]]:
    registry = HostRegistry()
    player = PlayerState(hacking=50)
    target = Server(
        "foodnstuff", hack_difficulty=10, money_available=2e6, required_hacking_skill=1,
        registry=registry, scheduler=scheduler, player=player,
    )
    attackers = [
        Server("home", cpu_cores=cores, purchased_by_player=True,
               registry=registry, scheduler=scheduler, player=player),
        Server("pserv-0", cpu_cores=1, purchased_by_player=True,
               registry=registry, scheduler=scheduler, player=player),
    ]
    for s in (target, *attackers):
        registry.add(s)
    return registry, target, attackers


def print_state(t: float, target: Server) -> None:
    state = target.suppression_state()
    threads = sum(c["threads"] for c in state["threads"])
    print(f"  [{t:5.1f}s] security={target.hack_difficulty:7.3f}  "
          f"suppression={state['suppression']:.3f}  clock={state['clock']:>7s}  "
          f"threads={threads}")


def run(seconds: int, threads: int, cores: int, fortify: float, realtime: bool) -> None:
    scheduler = ThreadScheduler(name="suppression") if realtime else ManualScheduler()
    registry, target, attackers = build_world(scheduler, cores)

    print(f"\n{'='*60}")
    print(f"  TARGET: {target.hostname}  (base security {target.base_difficulty:.2f}, "
          f"min {target.min_difficulty})")
    print(f"{'='*60}")

    half = threads // 2
    target.add_suppression_threads(attackers[0].hostname, threads - half)
    target.add_suppression_threads(attackers[1].hostname, half)
    print(f"  Suppression factor: {target.get_suppression_factor():.4f}")

    for second in range(1, seconds + 1):
        if realtime:
            time.sleep(1.0)
        else:
            scheduler.advance(1.0)
        target.fortify(fortify)
        print_state(float(second), target)

    target.remove_suppression_threads(attackers[0].hostname, threads - half)
    target.remove_suppression_threads(attackers[1].hostname, half)
    print_state(float(seconds), target)

    # Save/reload never carries contributions over
    target.add_suppression_threads(attackers[0].hostname, 1)
    reloaded = loads_servers(dumps_servers([target]), scheduler=scheduler)[0]
    target.destroy()
    print(f"\n  Reloaded: {reloaded.suppression_state()}")

    print(f"\n  Diagnostics: {len(target.diagnostics)}")
    for d in target.diagnostics.entries:
        print(f"    {d.kind.value}: {d.message}")

    if realtime:
        scheduler.shutdown()


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seconds", type=int, default=30)
    parser.add_argument("--threads", type=int, default=20)
    parser.add_argument("--cores", type=int, default=4)
    parser.add_argument("--fortify", type=float, default=0.5,
                        help="security added per simulated second")
    parser.add_argument("--realtime", action="store_true")
    args = parser.parse_args()
    if args.threads < 2:
        parser.error("--threads must be at least 2 (split across two attackers)")

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    run(args.seconds, args.threads, args.cores, args.fortify, args.realtime)


if __name__ == "__main__":
    main()
