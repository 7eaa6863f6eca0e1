"""Tests for bot decision functions."""

import random

import pytest

from leaguecore.league_engine import bots
from leaguecore.league_engine.errors import NoAvailablePlayers
from leaguecore.league_engine.schema.models import Player
from leaguecore.league_engine.settings import LeagueSettings
from leaguecore.league_engine.slots import generate_slot_layout


def _player(player_id, position, adp):
    return Player(player_id=player_id, full_name=player_id.upper(), position=position, adp=adp)


POOL = [
    _player("qb1", "QB", 5.0),
    _player("rb1", "RB", 1.0),
    _player("rb2", "RB", 3.0),
    _player("rb3", "RB", 8.0),
    _player("rb4", "RB", 20.0),
    _player("wr1", "WR", 2.0),
    _player("k1", "K", 150.0),
    _player("def1", "DEF", None),
]


class TestDraftSelection:
    def test_round_priorities_widen(self):
        assert bots.round_priorities(1) == ("RB", "WR")
        assert bots.round_priorities(3) == ("RB", "WR", "QB")
        assert bots.round_priorities(8)[0] == "WR"
        assert "K" in bots.round_priorities(12)
        assert bots.round_priorities(13)[:2] == ("K", "DEF")

    def test_early_round_picks_top_three_running_backs(self):
        seen = {
            bots.choose_draft_pick(POOL, 1, random.Random(seed)).player_id
            for seed in range(40)
        }
        assert seen <= {"rb1", "rb2", "rb3"}
        assert len(seen) > 1

    def test_late_round_prefers_kicker(self):
        pick = bots.choose_draft_pick(POOL, 14, random.Random(3))
        assert pick.player_id == "k1"

    def test_falls_back_to_whole_pool(self):
        pool = [_player("k1", "K", 150.0), _player("def1", "DEF", None)]
        pick = bots.choose_draft_pick(pool, 1, random.Random(0))
        assert pick.player_id in {"k1", "def1"}

    def test_empty_pool_raises(self):
        with pytest.raises(NoAvailablePlayers):
            bots.choose_draft_pick([], 1, random.Random(0))
        with pytest.raises(NoAvailablePlayers):
            bots.choose_random_player([], random.Random(0))

    def test_same_seed_same_pick(self):
        first = bots.choose_draft_pick(POOL, 2, random.Random(99))
        second = bots.choose_draft_pick(POOL, 2, random.Random(99))
        assert first == second


class TestTradeEvaluation:
    def test_accepts_within_tolerance(self):
        verdict = bots.evaluate_trade([10.5], [10.0])
        assert verdict.accept
        assert verdict.receiving_avg_adp == 10.5

    def test_declines_worse_package(self):
        assert not bots.evaluate_trade([12.0], [10.0]).accept

    def test_missing_adp_counts_as_999(self):
        verdict = bots.evaluate_trade([None], [50.0])
        assert verdict.receiving_avg_adp == 999.0
        assert not verdict.accept

    def test_receiving_nothing_is_unattractive(self):
        assert not bots.evaluate_trade([], [30.0]).accept

    def test_averages_multiple_players(self):
        verdict = bots.evaluate_trade([10.0, 20.0], [15.0])
        assert verdict.receiving_avg_adp == 15.0
        assert verdict.accept


class TestLineupPlanning:
    layout = generate_slot_layout(
        LeagueSettings(
            qb_count=1, rb_count=1, wr_count=1, te_count=0, flex_count=1,
            k_count=0, def_count=0, bench_count=3, ir_count=1,
        )
    )

    def _entry(self, entry_id, slot, position, adp):
        return {"entry_id": entry_id, "slot": slot, "position": position, "adp": adp}

    def test_best_players_start(self):
        entries = [
            self._entry("e1", "BN1", "RB", 1.0),
            self._entry("e2", "RB", "RB", 30.0),
            self._entry("e3", "BN2", "WR", 4.0),
            self._entry("e4", "WR", "QB", 9.0),
            self._entry("e5", "BN3", "RB", 12.0),
        ]
        # e4 is illegally parked for the test; the plan simply relocates it.
        moves = dict(bots.plan_lineup(entries, self.layout))

        assert moves["e4"] == "QB"
        assert moves["e1"] == "RB"
        assert moves["e3"] == "WR"
        assert moves["e5"] == "FLEX"
        assert moves["e2"] == "BN1"

    def test_ir_entries_stay_put(self):
        entries = [self._entry("e1", "IR1", "RB", 1.0)]
        assert bots.plan_lineup(entries, self.layout) == []

    def test_no_moves_when_already_optimal(self):
        entries = [
            self._entry("e1", "RB", "RB", 1.0),
            self._entry("e2", "WR", "WR", 2.0),
        ]
        assert bots.plan_lineup(entries, self.layout) == []

    def test_free_agent_fill_best_adp_first(self):
        agents = [_player("a", "WR", 40.0), _player("b", "RB", 10.0), _player("c", "TE", None)]
        plan = bots.plan_free_agent_fill(["BN2", "BN3"], agents)
        assert [(slot, player.player_id) for slot, player in plan] == [("BN2", "b"), ("BN3", "a")]
