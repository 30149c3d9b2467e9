"""Tests for the hacking-time formulas."""

import pytest

from hostsec.hacking import (
    PlayerState,
    grow_time,
    hacking_time,
    intelligence_bonus,
    weaken_time,
)


pytestmark = pytest.mark.unit


class TestIntelligenceBonus:
    def test_zero_intelligence(self):
        assert intelligence_bonus(0) == 1

    def test_scales(self):
        assert intelligence_bonus(100) == pytest.approx(1 + 100 ** 0.8 / 600)
        assert intelligence_bonus(100, weight=2) == pytest.approx(1 + 2 * 100 ** 0.8 / 600)


class TestTimes:
    def test_baseline(self, make_server):
        s = make_server()
        p = PlayerState()
        # (2.5 * 1 + 500) / (1 + 50), times 5
        expected = 5 * 502.5 / 51
        assert hacking_time(s, p) == pytest.approx(expected)
        assert grow_time(s, p) == pytest.approx(3.2 * expected)
        assert weaken_time(s, p) == pytest.approx(4 * expected)

    def test_harder_server_takes_longer(self, make_server):
        p = PlayerState(hacking=100)
        easy = make_server("easy", hack_difficulty=5, required_hacking_skill=10)
        hard = make_server("hard", hack_difficulty=50, required_hacking_skill=300)
        assert weaken_time(hard, p) > weaken_time(easy, p)

    def test_weaken_time_tracks_security(self, make_server):
        p = PlayerState(hacking=100)
        s = make_server(hack_difficulty=30, required_hacking_skill=50)
        before = weaken_time(s, p)
        s.weaken(10)
        assert weaken_time(s, p) < before

    def test_player_speed(self, make_server):
        s = make_server(hack_difficulty=20, required_hacking_skill=20)
        slow = weaken_time(s, PlayerState(hacking=100))
        fast = weaken_time(s, PlayerState(hacking=100, hacking_speed_mult=2.0))
        assert fast == pytest.approx(slow / 2)

    def test_default_server_uses_formula(self, registry, scheduler, tunables):
        from hostsec.server import Server
        s = Server("t", registry=registry, scheduler=scheduler, settings=tunables)
        s.add_suppression_threads("home", 1)
        scheduler.advance(0.25)
        expected_weaken = 4 * 5 * 502.5 / 51
        assert s.suppression == pytest.approx(0.2 / expected_weaken / 2)
