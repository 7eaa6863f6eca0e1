"""Collaborator interfaces for notifications, activity and league phase."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from .store import events as event_store
from .store import leagues as league_store

logger = logging.getLogger(__name__)

TRADE_PROPOSED = "trade_proposed"
TRADE_ACCEPTED = "trade_accepted"
TRADE_DECLINED = "trade_declined"
TRADE_COMPLETED = "trade_completed"
FREE_AGENT_PICKUP = "free_agent_pickup"
DRAFT_COMPLETED = "draft_completed"


class EventSink(Protocol):
    def notify(
        self, conn, user_id: str, league_id: str, kind: str, trade_id: Optional[str] = None
    ) -> None:
        ...

    def mark_read(self, conn, trade_id: str, user_id: Optional[str] = None) -> None:
        ...

    def record_activity(self, conn, league_id: str, kind: str, payload: dict[str, Any]) -> None:
        ...


class PhaseGateway(Protocol):
    def set_phase(self, conn, league_id: str, phase: str) -> None:
        ...


class DatabaseEventSink:
    """Writes notifications and activity events into the league database."""

    def notify(
        self, conn, user_id: str, league_id: str, kind: str, trade_id: Optional[str] = None
    ) -> None:
        event_store.insert_notification(conn, user_id, league_id, kind, trade_id)

    def mark_read(self, conn, trade_id: str, user_id: Optional[str] = None) -> None:
        event_store.mark_trade_notifications_read(conn, trade_id, user_id)

    def record_activity(self, conn, league_id: str, kind: str, payload: dict[str, Any]) -> None:
        event_store.insert_activity(conn, league_id, kind, payload)


class DatabasePhaseGateway:
    def set_phase(self, conn, league_id: str, phase: str) -> None:
        league_store.set_phase(conn, league_id, phase)
        logger.info("League %s phase -> %s", league_id, phase)
