"""Roster slot layout derived from league settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .schema.models import POSITIONS
from .settings import LeagueSettings

FLEX_POSITIONS = ("RB", "WR", "TE")

SLOT_STARTER = "starter"
SLOT_BENCH = "bench"
SLOT_IR = "ir"


def _numbered(prefix: str, count: int) -> list[str]:
    count = max(int(count), 0)
    if count == 0:
        return []
    if count == 1:
        return [prefix]
    return [f"{prefix}{index}" for index in range(1, count + 1)]


@dataclass(frozen=True)
class SlotLayout:
    starter_slots: tuple[str, ...]
    bench_slots: tuple[str, ...]
    ir_slots: tuple[str, ...]
    slot_labels: dict[str, str] = field(default_factory=dict)
    allowed_positions: dict[str, tuple[str, ...]] = field(default_factory=dict)
    position_to_starter_slots: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def all_slots(self) -> tuple[str, ...]:
        return self.starter_slots + self.bench_slots + self.ir_slots

    @property
    def total_slots(self) -> int:
        return len(self.all_slots)

    def slot_kind(self, slot: str) -> Optional[str]:
        if slot in self.bench_slots:
            return SLOT_BENCH
        if slot in self.ir_slots:
            return SLOT_IR
        if slot in self.starter_slots:
            return SLOT_STARTER
        return None

    def is_bench(self, slot: str) -> bool:
        return slot in self.bench_slots


def generate_slot_layout(settings: LeagueSettings) -> SlotLayout:
    """Build the ordered slot layout for a league.

    Slot names are numbered when a position has more than one slot
    (RB1, RB2) and bare when it has exactly one (QB). Bench slots are
    BN1..n and IR slots IR1..n.
    """
    by_label = {
        "QB": _numbered("QB", settings.qb_count),
        "RB": _numbered("RB", settings.rb_count),
        "WR": _numbered("WR", settings.wr_count),
        "TE": _numbered("TE", settings.te_count),
        "FLEX": _numbered("FLEX", settings.flex_count),
        "K": _numbered("K", settings.k_count),
        "DEF": _numbered("DEF", settings.def_count),
    }
    starters: list[str] = []
    labels: dict[str, str] = {}
    allowed: dict[str, tuple[str, ...]] = {}
    for label, slots in by_label.items():
        for slot in slots:
            starters.append(slot)
            labels[slot] = label
            allowed[slot] = FLEX_POSITIONS if label == "FLEX" else (label,)

    bench = [f"BN{index}" for index in range(1, max(settings.bench_count, 0) + 1)]
    ir = [f"IR{index}" for index in range(1, max(settings.ir_count, 0) + 1)]
    for slot in bench:
        labels[slot] = "BN"
        allowed[slot] = ()
    for slot in ir:
        labels[slot] = "IR"
        allowed[slot] = ()

    position_to_starters = {
        position: tuple(by_label[position])
        + (tuple(by_label["FLEX"]) if position in FLEX_POSITIONS else ())
        for position in POSITIONS
    }

    return SlotLayout(
        starter_slots=tuple(starters),
        bench_slots=tuple(bench),
        ir_slots=tuple(ir),
        slot_labels=labels,
        allowed_positions=allowed,
        position_to_starter_slots=position_to_starters,
    )


def can_fill_slot(
    layout: SlotLayout, slot: str, position: str, injury_status: Optional[str] = None
) -> bool:
    """Whether a player of `position` may occupy `slot`.

    Bench takes anyone, IR takes only players with an injury status,
    starter slots take the positions listed for them.
    """
    kind = layout.slot_kind(slot)
    if kind == SLOT_BENCH:
        return True
    if kind == SLOT_IR:
        return bool(injury_status)
    if kind == SLOT_STARTER:
        return position in layout.allowed_positions.get(slot, ())
    return False
