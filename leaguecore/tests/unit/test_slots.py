"""Tests for slot layout generation and eligibility."""

from leaguecore.league_engine.settings import LeagueSettings
from leaguecore.league_engine.slots import can_fill_slot, generate_slot_layout


def test_default_layout_names():
    layout = generate_slot_layout(LeagueSettings())

    assert layout.starter_slots == ("QB", "RB1", "RB2", "WR1", "WR2", "TE", "FLEX", "K", "DEF")
    assert layout.bench_slots == tuple(f"BN{i}" for i in range(1, 8))
    assert layout.ir_slots == ("IR1", "IR2")
    assert layout.total_slots == 9 + 7 + 2
    assert len(set(layout.all_slots)) == layout.total_slots


def test_numbered_only_when_more_than_one():
    layout = generate_slot_layout(
        LeagueSettings(qb_count=2, rb_count=1, flex_count=2, k_count=0, def_count=0, ir_count=0)
    )

    assert layout.starter_slots == ("QB1", "QB2", "RB", "WR1", "WR2", "TE", "FLEX1", "FLEX2")
    assert layout.ir_slots == ()
    assert layout.position_to_starter_slots["K"] == ()


def test_position_to_starter_slots_includes_flex():
    layout = generate_slot_layout(LeagueSettings())

    assert layout.position_to_starter_slots["RB"] == ("RB1", "RB2", "FLEX")
    assert layout.position_to_starter_slots["WR"] == ("WR1", "WR2", "FLEX")
    assert layout.position_to_starter_slots["TE"] == ("TE", "FLEX")
    assert layout.position_to_starter_slots["QB"] == ("QB",)
    assert layout.position_to_starter_slots["DEF"] == ("DEF",)


class TestCanFillSlot:
    layout = generate_slot_layout(LeagueSettings())

    def test_starter_slots_follow_position(self):
        assert can_fill_slot(self.layout, "QB", "QB")
        assert not can_fill_slot(self.layout, "QB", "RB")
        assert can_fill_slot(self.layout, "FLEX", "TE")
        assert not can_fill_slot(self.layout, "FLEX", "QB")

    def test_bench_takes_anyone(self):
        for position in ("QB", "RB", "WR", "TE", "K", "DEF"):
            assert can_fill_slot(self.layout, "BN3", position)

    def test_ir_requires_injury_status(self):
        assert not can_fill_slot(self.layout, "IR1", "WR")
        assert can_fill_slot(self.layout, "IR1", "WR", "Out")

    def test_unknown_slot(self):
        assert not can_fill_slot(self.layout, "BN99", "WR")
