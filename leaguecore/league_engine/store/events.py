"""Notification and activity-event persistence."""

from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy import select, update

from ..schema.models import ActivityEvent, Notification
from ..schema.tables import activity_events, notifications
from ._helpers import fetch_all
from .sqlite_store import bulk_insert, utc_now


def insert_notification(
    conn, user_id: str, league_id: str, kind: str, trade_id: Optional[str] = None
) -> None:
    bulk_insert(
        conn,
        Notification.table_name,
        [
            Notification(
                user_id=user_id,
                league_id=league_id,
                type=kind,
                trade_id=trade_id,
                created_at=utc_now(),
            )
        ],
    )


def mark_trade_notifications_read(conn, trade_id: str, user_id: Optional[str] = None) -> int:
    stmt = update(notifications).where(
        notifications.c.trade_id == trade_id, notifications.c.is_read.is_(False)
    )
    if user_id is not None:
        stmt = stmt.where(notifications.c.user_id == user_id)
    return conn.execute(stmt.values(is_read=True)).rowcount


def list_notifications(conn, user_id: str, unread_only: bool = False) -> list[dict[str, Any]]:
    stmt = select(notifications).where(notifications.c.user_id == user_id)
    if unread_only:
        stmt = stmt.where(notifications.c.is_read.is_(False))
    return fetch_all(conn, stmt.order_by(notifications.c.notification_id))


def insert_activity(conn, league_id: str, kind: str, payload: dict[str, Any]) -> None:
    bulk_insert(
        conn,
        ActivityEvent.table_name,
        [
            ActivityEvent(
                league_id=league_id,
                type=kind,
                payload_json=json.dumps(payload, sort_keys=True),
                created_at=utc_now(),
            )
        ],
    )


def list_activity(conn, league_id: str) -> list[dict[str, Any]]:
    rows = fetch_all(
        conn,
        select(activity_events)
        .where(activity_events.c.league_id == league_id)
        .order_by(activity_events.c.event_id),
    )
    for row in rows:
        row["payload"] = json.loads(row.pop("payload_json") or "{}")
    return rows
