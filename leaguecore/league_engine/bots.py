"""Decision policy for bot-managed teams.

Everything here is a pure function over plain data plus an injected
`random.Random`; the engines load state, ask the policy, and apply the
answer.
"""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import Any, Mapping, Optional, Protocol, Sequence

from .errors import NoAvailablePlayers
from .schema.models import Player
from .slots import SlotLayout

UNKNOWN_ADP = 999.0
TRADE_TOLERANCE = 1.10
CANDIDATE_POOL_SIZE = 3


def adp_sort_key(adp: Optional[float], name: str = "") -> tuple[bool, float, str]:
    return (adp is None, adp if adp is not None else 0.0, name)


def round_priorities(draft_round: int) -> tuple[str, ...]:
    """Positions a bot looks at first, by draft round."""
    if draft_round <= 2:
        return ("RB", "WR")
    if draft_round <= 4:
        return ("RB", "WR", "QB")
    if draft_round <= 8:
        return ("WR", "RB", "TE", "QB")
    if draft_round <= 12:
        return ("WR", "RB", "TE", "QB", "K")
    return ("K", "DEF", "WR", "RB", "TE", "QB")


class DraftPolicy(Protocol):
    def choose(self, pool: Sequence[Player], draft_round: int, rng: random.Random) -> Player:
        ...


class AdpDraftPolicy:
    """Round-aware positional priority with a little randomness at the top."""

    def __init__(self, candidate_pool_size: int = CANDIDATE_POOL_SIZE) -> None:
        self.candidate_pool_size = candidate_pool_size

    def choose(self, pool: Sequence[Player], draft_round: int, rng: random.Random) -> Player:
        return choose_draft_pick(
            pool, draft_round, rng, candidate_pool_size=self.candidate_pool_size
        )


def choose_draft_pick(
    pool: Sequence[Player],
    draft_round: int,
    rng: random.Random,
    *,
    candidate_pool_size: int = CANDIDATE_POOL_SIZE,
) -> Player:
    if not pool:
        raise NoAvailablePlayers()
    ranked = sorted(pool, key=lambda p: adp_sort_key(p.adp, p.full_name))
    for position in round_priorities(draft_round):
        candidates = [player for player in ranked if player.position == position]
        if candidates:
            return rng.choice(candidates[:candidate_pool_size])
    return rng.choice(ranked)


def choose_random_player(pool: Sequence[Player], rng: random.Random) -> Player:
    """Uniform choice used when the pick clock runs out."""
    if not pool:
        raise NoAvailablePlayers()
    return rng.choice(list(pool))


def plan_lineup(
    entries: Sequence[Mapping[str, Any]], layout: SlotLayout
) -> list[tuple[str, str]]:
    """Greedy best-ADP lineup for one roster.

    `entries` are roster rows with entry_id, slot, position and adp.
    Entries parked on IR stay there. Returns (entry_id, target_slot) moves
    in the order they should be applied: starter slots in layout order,
    then bench slots.
    """
    movable = [entry for entry in entries if entry["slot"] not in layout.ir_slots]
    ranked = sorted(
        movable, key=lambda e: adp_sort_key(e.get("adp"), e.get("full_name") or "")
    )
    assigned: set[str] = set()
    moves: list[tuple[str, str]] = []

    for slot in layout.starter_slots:
        allowed = layout.allowed_positions.get(slot, ())
        candidate = next(
            (
                entry
                for entry in ranked
                if entry["entry_id"] not in assigned and entry["position"] in allowed
            ),
            None,
        )
        if candidate is None:
            continue
        assigned.add(candidate["entry_id"])
        if candidate["slot"] != slot:
            moves.append((candidate["entry_id"], slot))

    bench = iter(layout.bench_slots)
    for entry in ranked:
        if entry["entry_id"] in assigned:
            continue
        slot = next(bench, None)
        if slot is None:
            break
        assigned.add(entry["entry_id"])
        if entry["slot"] != slot:
            moves.append((entry["entry_id"], slot))
    return moves


def plan_free_agent_fill(
    open_bench_slots: Sequence[str], free_agents: Sequence[Player]
) -> list[tuple[str, Player]]:
    """Best-ADP free agent for each empty bench slot."""
    ranked = sorted(free_agents, key=lambda p: adp_sort_key(p.adp, p.full_name))
    return list(zip(open_bench_slots, ranked))


@dataclass(frozen=True)
class TradeEvaluation:
    receiving_avg_adp: float
    giving_avg_adp: float
    accept: bool


def _average_adp(values: Sequence[Optional[float]]) -> float:
    if not values:
        return UNKNOWN_ADP
    return sum(UNKNOWN_ADP if value is None else value for value in values) / len(values)


def evaluate_trade(
    receiving_adps: Sequence[Optional[float]],
    giving_adps: Sequence[Optional[float]],
    *,
    tolerance: float = TRADE_TOLERANCE,
) -> TradeEvaluation:
    """Accept when the incoming players' average ADP is no worse than the
    outgoing average plus a 10% tolerance. Missing ADP counts as 999."""
    receiving = _average_adp(receiving_adps)
    giving = _average_adp(giving_adps)
    return TradeEvaluation(
        receiving_avg_adp=receiving,
        giving_avg_adp=giving,
        accept=receiving <= giving * tolerance,
    )
