"""Roster store operations and member-facing roster actions."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from . import bots
from .errors import (
    IneligiblePosition,
    IneligibleSwap,
    InsufficientRosterSpace,
    InvalidSlot,
    NotABot,
    NotAMember,
    NotFoundError,
    NotOwner,
    PlayerAlreadyDrafted,
    PlayerAlreadyOwned,
    SlotOccupied,
    Unauthenticated,
)
from .events import FREE_AGENT_PICKUP, DatabaseEventSink, EventSink
from .locks import LockKey, LockRegistry, draft_key, member_key
from .schema.models import ACQUIRED_FREE_AGENT, DRAFT_COMPLETED, Member, RosterEntry
from .slots import SlotLayout, can_fill_slot, generate_slot_layout
from .store import drafts as draft_store
from .store import leagues as league_store
from .store import players as player_store
from .store import rosters as roster_store
from .store.sqlite_store import new_id, utc_now

logger = logging.getLogger(__name__)

_PARK_PREFIX = "__swap__"


# Primitives. Each takes an open connection and runs inside the caller's
# transaction.


def place(
    conn,
    league_id: str,
    member_id: str,
    player_id: str,
    slot: str,
    acquired_via: str,
    layout: Optional[SlotLayout] = None,
) -> RosterEntry:
    if layout is not None:
        if slot not in layout.all_slots:
            raise InvalidSlot(f"Unknown slot {slot!r}.")
        player = player_store.get_player(conn, player_id)
        if not can_fill_slot(layout, slot, player.position, player.injury_status):
            raise IneligiblePosition(f"{player.position} cannot play {slot}.")
    if roster_store.find_entry_in_slot(conn, member_id, slot) is not None:
        raise SlotOccupied(f"Slot {slot} is already filled.")
    if roster_store.find_entry_for_player(conn, league_id, player_id) is not None:
        raise PlayerAlreadyOwned(details={"player_id": player_id})

    entry = RosterEntry(
        entry_id=new_id(),
        league_id=league_id,
        member_id=member_id,
        player_id=player_id,
        slot=slot,
        acquired_via=acquired_via,
        acquired_at=utc_now(),
    )
    try:
        roster_store.insert_entry(conn, entry)
    except IntegrityError as exc:
        raise PlayerAlreadyOwned(details={"player_id": player_id}) from exc
    return entry


def remove(conn, entry_id: str) -> RosterEntry:
    entry = roster_store.get_entry(conn, entry_id)
    if entry is None:
        raise NotFoundError("roster entry", entry_id)
    roster_store.delete_entry(conn, entry_id)
    return entry


def _require_fit(conn, layout: SlotLayout, entry: RosterEntry, slot: str, error=IneligiblePosition):
    if slot not in layout.all_slots:
        raise InvalidSlot(f"Unknown slot {slot!r}.")
    player = player_store.get_player(conn, entry.player_id)
    if not can_fill_slot(layout, slot, player.position, player.injury_status):
        raise error(f"{player.full_name} ({player.position}) cannot play {slot}.")


def relocate(conn, entry_id: str, target_slot: str, layout: SlotLayout) -> RosterEntry:
    entry = roster_store.get_entry(conn, entry_id)
    if entry is None:
        raise NotFoundError("roster entry", entry_id)
    if entry.slot == target_slot:
        return entry
    _require_fit(conn, layout, entry, target_slot)
    occupant = roster_store.find_entry_in_slot(conn, entry.member_id, target_slot)
    if occupant is not None:
        raise SlotOccupied(f"Slot {target_slot} is already filled.")
    roster_store.set_slot(conn, entry_id, target_slot)
    entry.slot = target_slot
    return entry


def first_open_slot(conn, member_id: str, slots: Sequence[str]) -> Optional[str]:
    occupied = roster_store.occupied_slots(conn, member_id)
    for slot in slots:
        if slot not in occupied:
            return slot
    return None


def open_slots(conn, member_id: str, slots: Sequence[str]) -> list[str]:
    occupied = roster_store.occupied_slots(conn, member_id)
    return [slot for slot in slots if slot not in occupied]


def move_player(
    conn, member_id: str, entry_id: str, target_slot: str, layout: SlotLayout
) -> list[RosterEntry]:
    """Move an entry into `target_slot`, swapping with any occupant.

    The occupant takes the mover's original slot. If either player is not
    eligible for its new slot nothing is changed.
    """
    entry = roster_store.get_entry(conn, entry_id)
    if entry is None:
        raise NotFoundError("roster entry", entry_id)
    if entry.member_id != member_id:
        raise NotOwner("That player is not on your roster.")
    if entry.slot == target_slot:
        return [entry]

    _require_fit(conn, layout, entry, target_slot)
    occupant = roster_store.find_entry_in_slot(conn, member_id, target_slot)
    if occupant is None:
        return [relocate(conn, entry_id, target_slot, layout)]

    origin = entry.slot
    _require_fit(conn, layout, occupant, origin, error=IneligibleSwap)

    # Park the occupant so the (member, slot) uniqueness holds at every step.
    roster_store.set_slot(conn, occupant.entry_id, f"{_PARK_PREFIX}{occupant.entry_id}")
    roster_store.set_slot(conn, entry.entry_id, target_slot)
    roster_store.set_slot(conn, occupant.entry_id, origin)
    entry.slot, occupant.slot = target_slot, origin
    return [entry, occupant]


def get_roster(conn, member_id: str, layout: SlotLayout) -> dict[str, list[dict[str, Any]]]:
    """Roster entries grouped by slot kind, in layout slot order.

    Returns:
        {"starters": [...], "bench": [...], "ir": [...]} where each item is a
        roster entry joined with player name, position, ADP and injury status.
        Empty slots appear with ``player_id`` None.
    """
    by_slot = {row["slot"]: row for row in roster_store.list_entries_with_players(conn, member_id)}

    def _group(slots: Sequence[str]) -> list[dict[str, Any]]:
        return [by_slot.get(slot) or {"slot": slot, "player_id": None} for slot in slots]

    return {
        "starters": _group(layout.starter_slots),
        "bench": _group(layout.bench_slots),
        "ir": _group(layout.ir_slots),
    }


def layout_for_league(conn, league_id: str) -> SlotLayout:
    return generate_slot_layout(league_store.get_settings(conn, league_id))


class RosterManager:
    """Lineup moves, free-agent moves and bot roster upkeep.

    Every mutation runs in one transaction while holding the member's lock.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        locks: Optional[LockRegistry] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        self.engine = engine
        self.locks = locks or LockRegistry()
        self.events = events or DatabaseEventSink()

    def _resolve_member(self, league_id: str, user_id: Optional[str]) -> Member:
        if not user_id:
            raise Unauthenticated()
        with self.engine.connect() as conn:
            league_store.get_league(conn, league_id)
            member = league_store.find_member_for_user(conn, league_id, user_id)
        if member is None:
            raise NotAMember()
        return member

    def get_roster(self, member_id: str) -> dict[str, list[dict[str, Any]]]:
        with self.engine.connect() as conn:
            member = league_store.get_member(conn, member_id)
            return get_roster(conn, member_id, layout_for_league(conn, member.league_id))

    def move_player(
        self, league_id: str, user_id: Optional[str], entry_id: str, target_slot: str
    ) -> list[RosterEntry]:
        member = self._resolve_member(league_id, user_id)
        with self.locks.hold(member_key(member.member_id), reason="move_player"):
            with self.engine.begin() as conn:
                layout = layout_for_league(conn, league_id)
                return move_player(conn, member.member_id, entry_id, target_slot, layout)

    def free_agents(
        self,
        league_id: str,
        *,
        search: Optional[str] = None,
        position: Optional[str] = None,
        limit: Optional[int] = 50,
    ):
        with self.engine.connect() as conn:
            return player_store.free_agents(
                conn, league_id, search=search, position=position, limit=limit
            )

    def _free_agent_keys(self, league_id: str, member_id: str) -> list[LockKey]:
        """The member's lock, plus the draft lock while the league's draft is open."""
        with self.engine.connect() as conn:
            draft = draft_store.get_draft_for_league(conn, league_id)
        keys = [member_key(member_id)]
        if draft is not None and draft.status != DRAFT_COMPLETED:
            keys.append(draft_key(draft.draft_id))
        return keys

    def pickup(self, league_id: str, user_id: Optional[str], player_id: str) -> RosterEntry:
        member = self._resolve_member(league_id, user_id)
        keys = self._free_agent_keys(league_id, member.member_id)
        with self.locks.hold(*keys, reason="pickup"):
            with self.engine.begin() as conn:
                layout = layout_for_league(conn, league_id)
                return self._add_free_agent(conn, member, player_id, layout, slot=None)

    def drop(self, league_id: str, user_id: Optional[str], entry_id: str) -> RosterEntry:
        member = self._resolve_member(league_id, user_id)
        with self.locks.hold(member_key(member.member_id), reason="drop"):
            with self.engine.begin() as conn:
                entry = self._owned_entry(conn, member, entry_id)
                remove(conn, entry.entry_id)
                logger.info("Member %s dropped player %s", member.member_id, entry.player_id)
                return entry

    def drop_and_add(
        self, league_id: str, user_id: Optional[str], entry_id: str, player_id: str
    ) -> RosterEntry:
        member = self._resolve_member(league_id, user_id)
        keys = self._free_agent_keys(league_id, member.member_id)
        with self.locks.hold(*keys, reason="drop_and_add"):
            with self.engine.begin() as conn:
                layout = layout_for_league(conn, league_id)
                dropped = self._owned_entry(conn, member, entry_id)
                if roster_store.find_entry_for_player(conn, league_id, player_id):
                    raise PlayerAlreadyOwned(details={"player_id": player_id})
                remove(conn, dropped.entry_id)
                if layout.is_bench(dropped.slot):
                    slot = dropped.slot
                else:
                    slot = first_open_slot(conn, member.member_id, layout.bench_slots) or dropped.slot
                return self._add_free_agent(
                    conn, member, player_id, layout, slot=slot, dropped=dropped.player_id
                )

    def _owned_entry(self, conn, member: Member, entry_id: str) -> RosterEntry:
        entry = roster_store.get_entry(conn, entry_id)
        if entry is None:
            raise NotFoundError("roster entry", entry_id)
        if entry.member_id != member.member_id:
            raise NotOwner("That player is not on your roster.")
        return entry

    def _add_free_agent(
        self,
        conn,
        member: Member,
        player_id: str,
        layout: SlotLayout,
        *,
        slot: Optional[str],
        dropped: Optional[str] = None,
    ) -> RosterEntry:
        player = player_store.get_player(conn, player_id)
        if roster_store.find_entry_for_player(conn, member.league_id, player_id):
            raise PlayerAlreadyOwned(details={"player_id": player_id})
        if player_store.is_picked_in_open_draft(conn, member.league_id, player_id):
            raise PlayerAlreadyDrafted(
                "That player was picked in the league's draft.",
                details={"player_id": player_id},
            )
        if slot is None:
            slot = first_open_slot(conn, member.member_id, layout.bench_slots)
            if slot is None:
                raise InsufficientRosterSpace("No open bench slot. Drop a player first.")
        entry = place(
            conn, member.league_id, member.member_id, player_id, slot,
            ACQUIRED_FREE_AGENT, layout,
        )
        payload = {
            "member_id": member.member_id,
            "team_name": member.team_name,
            "player_id": player.player_id,
            "player_name": player.full_name,
        }
        if dropped:
            payload["dropped_player_id"] = dropped
        self.events.record_activity(conn, member.league_id, FREE_AGENT_PICKUP, payload)
        logger.info("Member %s picked up %s into %s", member.member_id, player.full_name, slot)
        return entry

    # Bot upkeep

    def set_bot_lineup(self, member_id: str) -> int:
        with self.locks.hold(member_key(member_id), reason="set_bot_lineup"):
            with self.engine.begin() as conn:
                member = league_store.get_member(conn, member_id)
                if not member.is_bot:
                    raise NotABot(details={"member_id": member_id})
                layout = layout_for_league(conn, member.league_id)
                entries = roster_store.list_entries_with_players(conn, member_id)
                moves = bots.plan_lineup(entries, layout)
                for entry_id, target in moves:
                    move_player(conn, member_id, entry_id, target, layout)
        logger.info("Bot %s lineup set (%d moves)", member_id, len(moves))
        return len(moves)

    def fill_bot_roster(self, member_id: str) -> int:
        with self.engine.connect() as conn:
            league_id = league_store.get_member(conn, member_id).league_id
        keys = self._free_agent_keys(league_id, member_id)
        with self.locks.hold(*keys, reason="fill_bot_roster"):
            with self.engine.begin() as conn:
                member = league_store.get_member(conn, member_id)
                if not member.is_bot:
                    raise NotABot(details={"member_id": member_id})
                layout = layout_for_league(conn, member.league_id)
                empty = open_slots(conn, member_id, layout.bench_slots)
                if not empty:
                    return 0
                pool = player_store.free_agents(conn, member.league_id, limit=len(empty))
                plan = bots.plan_free_agent_fill(empty, pool)
                for slot, player in plan:
                    self._add_free_agent(conn, member, player.player_id, layout, slot=slot)
        logger.info("Bot %s added %d free agents", member_id, len(plan))
        return len(plan)

    def _bot_ids(self, league_id: str) -> list[str]:
        with self.engine.connect() as conn:
            return [m.member_id for m in league_store.list_members(conn, league_id) if m.is_bot]

    def set_all_bot_lineups(self, league_id: str) -> dict[str, int]:
        return {member_id: self.set_bot_lineup(member_id) for member_id in self._bot_ids(league_id)}

    def fill_all_bot_rosters(self, league_id: str) -> dict[str, int]:
        return {member_id: self.fill_bot_roster(member_id) for member_id in self._bot_ids(league_id)}
