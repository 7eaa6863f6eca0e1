"""Turn a completed draft's picks into initial roster placements."""

from __future__ import annotations

import logging
from collections import defaultdict

from .rosters import place
from .schema.models import ACQUIRED_DRAFT, Draft
from .slots import SlotLayout
from .store import drafts as draft_store
from .store import players as player_store
from .store import rosters as roster_store

logger = logging.getLogger(__name__)


def populate_rosters(conn, draft: Draft, layout: SlotLayout) -> dict[str, int]:
    """Place every drafted player on its drafter's roster.

    Each member's picks are walked in pick order. A pick takes the first
    open starter slot its position may fill (FLEX included for RB/WR/TE),
    otherwise the first open bench slot. Returns placements per member.
    """
    picks = draft_store.list_picks(conn, draft.draft_id)
    catalog = player_store.get_players(conn, [pick.player_id for pick in picks])

    by_member = defaultdict(list)
    for pick in picks:
        by_member[pick.member_id].append(pick)

    placed: dict[str, int] = {}
    for member_id, member_picks in by_member.items():
        occupied = roster_store.occupied_slots(conn, member_id)
        count = 0
        for pick in member_picks:
            player = catalog[pick.player_id]
            starter_options = layout.position_to_starter_slots.get(player.position, ())
            slot = next((s for s in starter_options if s not in occupied), None)
            if slot is None:
                slot = next((s for s in layout.bench_slots if s not in occupied), None)
            if slot is None:
                logger.warning(
                    "No open slot for %s (pick %s) on member %s; left unplaced",
                    player.full_name,
                    pick.pick_number,
                    member_id,
                )
                continue
            place(conn, draft.league_id, member_id, pick.player_id, slot, ACQUIRED_DRAFT)
            occupied.add(slot)
            count += 1
        placed[member_id] = count
    return placed
