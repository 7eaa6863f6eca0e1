"""Roster entry data access."""

from __future__ import annotations

from sqlalchemy import delete, select, update

from ..schema.models import RosterEntry
from ..schema.tables import players, roster_entries
from ._helpers import fetch_all, fetch_one
from .sqlite_store import bulk_insert


def get_entry(conn, entry_id: str) -> RosterEntry | None:
    row = fetch_one(conn, select(roster_entries).where(roster_entries.c.entry_id == entry_id))
    return RosterEntry.from_row(row) if row else None


def list_entries(conn, member_id: str) -> list[RosterEntry]:
    rows = fetch_all(
        conn,
        select(roster_entries)
        .where(roster_entries.c.member_id == member_id)
        .order_by(roster_entries.c.acquired_at, roster_entries.c.entry_id),
    )
    return [RosterEntry.from_row(row) for row in rows]


def list_entries_with_players(conn, member_id: str) -> list[dict]:
    """Roster entries joined with player name, position, ADP and injury status."""
    stmt = (
        select(
            roster_entries,
            players.c.full_name,
            players.c.position,
            players.c.nfl_team,
            players.c.adp,
            players.c.injury_status,
        )
        .join(players, players.c.player_id == roster_entries.c.player_id)
        .where(roster_entries.c.member_id == member_id)
    )
    return fetch_all(conn, stmt)


def list_league_entries(conn, league_id: str) -> list[RosterEntry]:
    rows = fetch_all(
        conn, select(roster_entries).where(roster_entries.c.league_id == league_id)
    )
    return [RosterEntry.from_row(row) for row in rows]


def find_entry_for_player(conn, league_id: str, player_id: str) -> RosterEntry | None:
    row = fetch_one(
        conn,
        select(roster_entries).where(
            roster_entries.c.league_id == league_id,
            roster_entries.c.player_id == player_id,
        ),
    )
    return RosterEntry.from_row(row) if row else None


def find_entry_in_slot(conn, member_id: str, slot: str) -> RosterEntry | None:
    row = fetch_one(
        conn,
        select(roster_entries).where(
            roster_entries.c.member_id == member_id, roster_entries.c.slot == slot
        ),
    )
    return RosterEntry.from_row(row) if row else None


def occupied_slots(conn, member_id: str) -> set[str]:
    rows = fetch_all(
        conn,
        select(roster_entries.c.slot).where(roster_entries.c.member_id == member_id),
    )
    return {row["slot"] for row in rows}


def insert_entry(conn, entry: RosterEntry) -> None:
    bulk_insert(conn, entry.table_name, [entry])


def delete_entry(conn, entry_id: str) -> int:
    result = conn.execute(
        delete(roster_entries).where(roster_entries.c.entry_id == entry_id)
    )
    return result.rowcount


def set_slot(conn, entry_id: str, slot: str) -> None:
    conn.execute(
        update(roster_entries)
        .where(roster_entries.c.entry_id == entry_id)
        .values(slot=slot)
    )
