"""Schema models and SQLAlchemy tables."""

from .models import (
    ActivityEvent,
    Draft,
    DraftOrderEntry,
    DraftPick,
    League,
    Member,
    Notification,
    Player,
    RosterEntry,
    Trade,
    TradeItem,
    TradeParticipant,
)
from .tables import TABLES, metadata

__all__ = [
    "ActivityEvent",
    "Draft",
    "DraftOrderEntry",
    "DraftPick",
    "League",
    "Member",
    "Notification",
    "Player",
    "RosterEntry",
    "Trade",
    "TradeItem",
    "TradeParticipant",
    "TABLES",
    "metadata",
]
