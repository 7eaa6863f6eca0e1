"""League and member lookups plus phase writes."""

from __future__ import annotations

from sqlalchemy import select, update

from ..errors import NotFoundError
from ..schema.models import League, Member
from ..schema.tables import leagues, members
from ..settings import LeagueSettings
from ._helpers import fetch_all, fetch_one


def get_league(conn, league_id: str) -> League:
    row = fetch_one(conn, select(leagues).where(leagues.c.league_id == league_id))
    if row is None:
        raise NotFoundError("league", league_id)
    return League.from_row(row)


def get_settings(conn, league_id: str) -> LeagueSettings:
    return LeagueSettings.from_json(get_league(conn, league_id).settings_json)


def set_phase(conn, league_id: str, phase: str) -> None:
    conn.execute(
        update(leagues).where(leagues.c.league_id == league_id).values(phase=phase)
    )


def list_members(conn, league_id: str) -> list[Member]:
    rows = fetch_all(
        conn,
        select(members)
        .where(members.c.league_id == league_id)
        .order_by(members.c.joined_at, members.c.member_id),
    )
    return [Member.from_row(row) for row in rows]


def get_member(conn, member_id: str) -> Member:
    row = fetch_one(conn, select(members).where(members.c.member_id == member_id))
    if row is None:
        raise NotFoundError("member", member_id)
    return Member.from_row(row)


def find_member_for_user(conn, league_id: str, user_id: str) -> Member | None:
    row = fetch_one(
        conn,
        select(members).where(
            members.c.league_id == league_id, members.c.user_id == user_id
        ),
    )
    return Member.from_row(row) if row else None
