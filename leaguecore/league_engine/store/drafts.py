"""Draft repository: one draft per league, looked up by id or by league."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select, update

from ..errors import NotFoundError
from ..schema.models import Draft, DraftOrderEntry, DraftPick
from ..schema.tables import draft_order, draft_picks, drafts
from ._helpers import fetch_all, fetch_one
from .sqlite_store import bulk_insert


def get_draft(conn, draft_id: str) -> Draft:
    row = fetch_one(conn, select(drafts).where(drafts.c.draft_id == draft_id))
    if row is None:
        raise NotFoundError("draft", draft_id)
    return Draft.from_row(row)


def get_draft_for_league(conn, league_id: str) -> Draft | None:
    row = fetch_one(conn, select(drafts).where(drafts.c.league_id == league_id))
    return Draft.from_row(row) if row else None


def insert_draft(conn, draft: Draft, order: list[str]) -> None:
    bulk_insert(conn, draft.table_name, [draft])
    replace_order(conn, draft.draft_id, order)


def replace_order(conn, draft_id: str, order: list[str]) -> None:
    conn.execute(delete(draft_order).where(draft_order.c.draft_id == draft_id))
    bulk_insert(
        conn,
        DraftOrderEntry.table_name,
        [
            DraftOrderEntry(draft_id=draft_id, member_id=member_id, position=index)
            for index, member_id in enumerate(order, start=1)
        ],
    )


def get_order(conn, draft_id: str) -> list[str]:
    """Member ids in draft position order (position 1 first)."""
    rows = fetch_all(
        conn,
        select(draft_order.c.member_id)
        .where(draft_order.c.draft_id == draft_id)
        .order_by(draft_order.c.position),
    )
    return [row["member_id"] for row in rows]


def update_draft(conn, draft_id: str, **values: Any) -> None:
    conn.execute(update(drafts).where(drafts.c.draft_id == draft_id).values(**values))


def advance_pick(conn, draft_id: str, expected_pick: int) -> bool:
    """Move current_pick forward by one only if it still equals expected_pick."""
    result = conn.execute(
        update(drafts)
        .where(drafts.c.draft_id == draft_id, drafts.c.current_pick == expected_pick)
        .values(current_pick=expected_pick + 1)
    )
    return result.rowcount == 1


def list_picks(conn, draft_id: str) -> list[DraftPick]:
    rows = fetch_all(
        conn,
        select(draft_picks)
        .where(draft_picks.c.draft_id == draft_id)
        .order_by(draft_picks.c.pick_number),
    )
    return [DraftPick.from_row(row) for row in rows]


def is_player_drafted(conn, draft_id: str, player_id: str) -> bool:
    row = fetch_one(
        conn,
        select(draft_picks.c.pick_number).where(
            draft_picks.c.draft_id == draft_id, draft_picks.c.player_id == player_id
        ),
    )
    return row is not None


def insert_pick(conn, pick: DraftPick) -> None:
    bulk_insert(conn, pick.table_name, [pick])
