"""Save/load tests.  Suppression contributions never survive a reload."""

from __future__ import annotations

import json

import pytest

from hostsec.persistence import (
    dumps_servers,
    from_envelope,
    load_servers,
    loads_servers,
    save_servers,
    to_envelope,
)
from hostsec.registry import HostRegistry
from hostsec.scheduling import ManualScheduler
from hostsec.server import Server


pytestmark = pytest.mark.unit


def _suppressed_server(make_server, scheduler) -> Server:
    make_server("home", cpu_cores=4)
    s = make_server("phantasy", hack_difficulty=20, money_available=5e5,
                    required_hacking_skill=100, server_growth=25, max_ram=32)
    s.weaken(3)
    s.change_minimum_security(1)
    s.add_suppression_threads("home", 8)
    scheduler.advance(2.05)
    return s


class TestServerDict:
    def test_to_dict_snapshot(self, make_server, scheduler):
        s = _suppressed_server(make_server, scheduler)
        d = s.to_dict()
        assert d["hostname"] == "phantasy"
        assert d["hack_difficulty"] == 17
        assert d["min_difficulty"] == 8
        assert d["money_max"] == 25 * 5e5
        assert d["active_suppression_threads"] == [{"hostname": "home", "threads": 8}]
        assert d["suppression_interval_id"] != 0
        assert d["suppression"] == pytest.approx(0.1)

    def test_round_trip_drops_suppression_activity(self, make_server, scheduler, tunables):
        s = _suppressed_server(make_server, scheduler)
        fresh = ManualScheduler()
        loaded = Server.from_dict(s.to_dict(), scheduler=fresh, settings=tunables)

        assert loaded.hostname == "phantasy"
        assert loaded.active_suppression_threads == []
        assert not loaded.suppression_clock.is_running
        assert loaded.suppression_interval_id == 0
        assert loaded.suppression_last_update_time == 0
        assert fresh.pending == 0

        # Everything else comes back as saved
        assert loaded.hack_difficulty == s.hack_difficulty
        assert loaded.base_difficulty == s.base_difficulty
        assert loaded.min_difficulty == s.min_difficulty
        assert loaded.money_available == s.money_available
        assert loaded.money_max == s.money_max
        assert loaded.suppression == pytest.approx(s.suppression)
        assert loaded.required_hacking_skill == 100
        assert loaded.server_growth == 25
        assert loaded.max_ram == 32

    def test_multipliers_not_reapplied(self, make_server, scheduler):
        from hostsec.config import Settings
        s = make_server("n00dles", hack_difficulty=10, money_available=100)
        tun = Settings(_env_file=None, starting_money_multiplier=3.0,
                       starting_security_multiplier=3.0, max_money_multiplier=3.0)
        loaded = Server.from_dict(s.to_dict(), scheduler=scheduler, settings=tun)
        assert loaded.hack_difficulty == 10
        assert loaded.money_available == 100
        assert loaded.money_max == 2500

    def test_tampered_payload_ignored(self, tunables):
        data = {
            "hostname": "evil",
            "hack_difficulty": 500,
            "min_difficulty": 0,
            "suppression": 9.0,
            "active_suppression_threads": [{"hostname": "home", "threads": 99}],
            "suppression_interval_id": 42,
            "suppression_last_update_time": 123456.0,
        }
        sched = ManualScheduler()
        loaded = Server.from_dict(data, scheduler=sched, settings=tunables)
        assert loaded.active_suppression_threads == []
        assert loaded.suppression_interval_id == 0
        assert loaded.suppression_last_update_time == 0
        assert loaded.hack_difficulty == 100
        assert loaded.suppression == 1.5

    def test_min_difficulty_clamped_on_load(self, tunables):
        data = {"hostname": "x", "hack_difficulty": 50, "min_difficulty": 250}
        loaded = Server.from_dict(data, scheduler=ManualScheduler(), settings=tunables)
        assert loaded.min_difficulty == 100
        assert loaded.hack_difficulty == 100

    def test_reserved_hostname_kept_on_load(self, tunables):
        data = {"hostname": "hacknet-node-0", "hack_difficulty": 5}
        loaded = Server.from_dict(data, scheduler=ManualScheduler(), settings=tunables)
        assert loaded.hostname == "hacknet-node-0"
        assert loaded.suppression_clock.name == "hacknet-node-0"
        assert loaded.to_dict()["hostname"] == "hacknet-node-0"

    def test_reloaded_server_can_be_suppressed_again(self, make_server, scheduler, tunables):
        s = _suppressed_server(make_server, scheduler)
        fresh = ManualScheduler()
        loaded = Server.from_dict(s.to_dict(), scheduler=fresh, settings=tunables)
        assert loaded.add_suppression_threads("home", 8)
        assert fresh.pending == 1
        assert loaded.diagnostics.entries == []


class TestJsonPersistence:
    def test_envelope(self, make_server):
        env = to_envelope(make_server("a"))
        assert env["ctor"] == "Server"
        assert env["data"]["hostname"] == "a"

    def test_unknown_ctor(self):
        with pytest.raises(ValueError):
            from_envelope({"ctor": "HacknetNode", "data": {}})

    def test_dumps_loads_registers(self, make_server, scheduler, tunables):
        s = _suppressed_server(make_server, scheduler)
        text = dumps_servers([s, make_server("other")])
        assert isinstance(json.loads(text), list)

        reg = HostRegistry()
        fresh = ManualScheduler()
        loaded = loads_servers(text, registry=reg, scheduler=fresh, settings=tunables)
        assert [x.hostname for x in loaded] == ["phantasy", "other"]
        assert reg.get("phantasy") is loaded[0]
        assert loaded[0].registry is reg
        assert all(not x.is_suppressed for x in loaded)
        assert fresh.pending == 0

    def test_save_load_file(self, make_server, scheduler, tunables, tmp_path):
        s = _suppressed_server(make_server, scheduler)
        path = tmp_path / "servers.json"
        save_servers(path, [s])
        loaded = load_servers(path, scheduler=ManualScheduler(), settings=tunables)
        assert len(loaded) == 1
        assert loaded[0].hack_difficulty == s.hack_difficulty
        assert loaded[0].active_suppression_threads == []
