"""Player catalog queries."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from ..errors import NotFoundError
from ..schema.models import DRAFT_COMPLETED, Player
from ..schema.tables import draft_picks, drafts, players, roster_entries
from ._helpers import fetch_all, fetch_one


def get_player(conn, player_id: str) -> Player:
    row = fetch_one(conn, select(players).where(players.c.player_id == player_id))
    if row is None:
        raise NotFoundError("player", player_id)
    return Player.from_row(row)


def get_players(conn, player_ids: list[str]) -> dict[str, Player]:
    if not player_ids:
        return {}
    rows = fetch_all(conn, select(players).where(players.c.player_id.in_(player_ids)))
    return {row["player_id"]: Player.from_row(row) for row in rows}


def _search_players(
    conn,
    excluded: list,
    *,
    search: Optional[str],
    position: Optional[str],
    limit: Optional[int],
) -> list[Player]:
    stmt = select(players)
    for subquery in excluded:
        stmt = stmt.where(players.c.player_id.not_in(subquery))
    if search:
        stmt = stmt.where(players.c.full_name.ilike(f"%{search.strip()}%"))
    if position:
        stmt = stmt.where(players.c.position == position.upper())
    stmt = stmt.order_by(
        players.c.adp.is_(None), players.c.adp, players.c.full_name
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return [Player.from_row(row) for row in fetch_all(conn, stmt)]


def available_for_draft(
    conn,
    league_id: str,
    draft_id: str,
    *,
    search: Optional[str] = None,
    position: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Player]:
    """List players not yet drafted in this draft and not rostered in the league.

    Args:
        conn: Database connection.
        league_id: League whose rosters are excluded.
        draft_id: Draft whose picks are excluded.
        search: Optional case-insensitive substring of the player's name.
        position: Optional position filter (QB, RB, WR, TE, K, DEF).
        limit: Optional maximum number of rows.

    Returns:
        Players ordered by ADP ascending (missing ADP last), then name.
    """
    drafted = select(draft_picks.c.player_id).where(draft_picks.c.draft_id == draft_id)
    owned = select(roster_entries.c.player_id).where(
        roster_entries.c.league_id == league_id
    )
    return _search_players(
        conn, [drafted, owned], search=search, position=position, limit=limit
    )


def free_agents(
    conn,
    league_id: str,
    *,
    search: Optional[str] = None,
    position: Optional[str] = None,
    limit: Optional[int] = 50,
) -> list[Player]:
    """List catalog players not rostered anywhere in the league, best ADP first.

    Players picked in a draft that has not completed yet are excluded too;
    they are owned by their drafter even before rosters are populated.
    """
    owned = select(roster_entries.c.player_id).where(
        roster_entries.c.league_id == league_id
    )
    return _search_players(
        conn,
        [owned, _open_draft_picks(league_id)],
        search=search,
        position=position,
        limit=limit,
    )


def _open_draft_picks(league_id: str):
    return (
        select(draft_picks.c.player_id)
        .join(drafts, drafts.c.draft_id == draft_picks.c.draft_id)
        .where(drafts.c.league_id == league_id, drafts.c.status != DRAFT_COMPLETED)
    )


def is_picked_in_open_draft(conn, league_id: str, player_id: str) -> bool:
    stmt = _open_draft_picks(league_id).where(draft_picks.c.player_id == player_id)
    return fetch_one(conn, stmt) is not None
