"""Trade, participant and item data access."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update

from ..errors import NotFoundError
from ..schema.models import (
    DECISION_PENDING,
    ROLE_RECIPIENT,
    TRADE_PROPOSED,
    Trade,
    TradeItem,
    TradeParticipant,
)
from ..schema.tables import trade_items, trade_participants, trades
from ._helpers import fetch_all, fetch_one
from .sqlite_store import bulk_insert


def insert_trade(
    conn,
    trade: Trade,
    participants: list[TradeParticipant],
    items: list[TradeItem],
) -> None:
    bulk_insert(conn, trade.table_name, [trade])
    bulk_insert(conn, TradeParticipant.table_name, participants)
    bulk_insert(conn, TradeItem.table_name, items)


def get_trade(conn, trade_id: str) -> Trade:
    row = fetch_one(conn, select(trades).where(trades.c.trade_id == trade_id))
    if row is None:
        raise NotFoundError("trade", trade_id)
    return Trade.from_row(row)


def list_participants(conn, trade_id: str) -> list[TradeParticipant]:
    rows = fetch_all(
        conn,
        select(trade_participants)
        .where(trade_participants.c.trade_id == trade_id)
        .order_by(trade_participants.c.seq),
    )
    return [TradeParticipant.from_row(row) for row in rows]


def list_items(conn, trade_id: str) -> list[TradeItem]:
    rows = fetch_all(
        conn,
        select(trade_items)
        .where(trade_items.c.trade_id == trade_id)
        .order_by(trade_items.c.player_id),
    )
    return [TradeItem.from_row(row) for row in rows]


def set_decision(conn, trade_id: str, member_id: str, decision: str, decided_at: str) -> None:
    conn.execute(
        update(trade_participants)
        .where(
            trade_participants.c.trade_id == trade_id,
            trade_participants.c.member_id == member_id,
        )
        .values(decision=decision, decided_at=decided_at)
    )


def set_status(conn, trade_id: str, status: str, updated_at: str) -> bool:
    """Move a proposed trade to a terminal status; False if it already left proposed."""
    result = conn.execute(
        update(trades)
        .where(trades.c.trade_id == trade_id, trades.c.status == TRADE_PROPOSED)
        .values(status=status, updated_at=updated_at)
    )
    return result.rowcount == 1


def list_trades(conn, league_id: str, status: Optional[str] = None) -> list[Trade]:
    stmt = select(trades).where(trades.c.league_id == league_id)
    if status:
        stmt = stmt.where(trades.c.status == status)
    stmt = stmt.order_by(trades.c.created_at.desc(), trades.c.trade_id)
    return [Trade.from_row(row) for row in fetch_all(conn, stmt)]


def list_pending_for_member(conn, member_id: str) -> list[Trade]:
    stmt = (
        select(trades)
        .join(trade_participants, trade_participants.c.trade_id == trades.c.trade_id)
        .where(
            trade_participants.c.member_id == member_id,
            trade_participants.c.role == ROLE_RECIPIENT,
            trade_participants.c.decision == DECISION_PENDING,
            trades.c.status == TRADE_PROPOSED,
        )
        .order_by(trades.c.created_at.desc())
    )
    return [Trade.from_row(row) for row in fetch_all(conn, stmt)]
