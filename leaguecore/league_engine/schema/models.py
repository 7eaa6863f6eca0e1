"""Row models for the league transaction engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar, Mapping, Optional

POSITIONS = ("QB", "RB", "WR", "TE", "K", "DEF")

LEAGUE_PHASES = ("setup", "drafting", "pre_week", "week_active", "complete")

DRAFT_SCHEDULED = "scheduled"
DRAFT_IN_PROGRESS = "in_progress"
DRAFT_COMPLETED = "completed"

TRADE_PROPOSED = "proposed"
TRADE_COMPLETED = "completed"
TRADE_DECLINED = "declined"
TRADE_CANCELED = "canceled"
TRADE_TERMINAL = (TRADE_COMPLETED, TRADE_DECLINED, TRADE_CANCELED)

ROLE_PROPOSER = "proposer"
ROLE_RECIPIENT = "recipient"

DECISION_PENDING = "pending"
DECISION_ACCEPTED = "accepted"
DECISION_DECLINED = "declined"

ACQUIRED_DRAFT = "draft"
ACQUIRED_FREE_AGENT = "free_agent"
ACQUIRED_TRADE = "trade"


class RowMixin:
    """Small helper to move values between dataclasses and table rows."""

    table_name: ClassVar[str]

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in row.items() if key in names})


@dataclass
class League(RowMixin):
    table_name: ClassVar[str] = "leagues"

    league_id: str
    name: str
    number_of_teams: int
    phase: str = "setup"
    current_week: int = 0
    settings_json: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Member(RowMixin):
    table_name: ClassVar[str] = "members"

    member_id: str
    league_id: str
    user_id: Optional[str] = None
    team_name: Optional[str] = None
    is_commissioner: bool = False
    is_bot: bool = False
    joined_at: Optional[str] = None


@dataclass
class Player(RowMixin):
    table_name: ClassVar[str] = "players"

    player_id: str
    full_name: str
    position: str
    nfl_team: Optional[str] = None
    status: Optional[str] = None
    injury_status: Optional[str] = None
    adp: Optional[float] = None


@dataclass
class Draft(RowMixin):
    table_name: ClassVar[str] = "drafts"

    draft_id: str
    league_id: str
    status: str
    number_of_rounds: int
    current_pick: int = 1
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class DraftOrderEntry(RowMixin):
    table_name: ClassVar[str] = "draft_order"

    draft_id: str
    member_id: str
    position: int


@dataclass
class DraftPick(RowMixin):
    table_name: ClassVar[str] = "draft_picks"

    draft_id: str
    pick_number: int
    round: int
    member_id: str
    player_id: str
    picked_at: Optional[str] = None


@dataclass
class RosterEntry(RowMixin):
    table_name: ClassVar[str] = "roster_entries"

    entry_id: str
    league_id: str
    member_id: str
    player_id: str
    slot: str
    acquired_via: str
    acquired_at: Optional[str] = None


@dataclass
class Trade(RowMixin):
    table_name: ClassVar[str] = "trades"

    trade_id: str
    league_id: str
    proposer_member_id: str
    status: str = TRADE_PROPOSED
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class TradeParticipant(RowMixin):
    table_name: ClassVar[str] = "trade_participants"

    trade_id: str
    member_id: str
    role: str
    decision: str
    seq: int
    decided_at: Optional[str] = None


@dataclass
class TradeItem(RowMixin):
    table_name: ClassVar[str] = "trade_items"

    trade_id: str
    player_id: str
    from_member_id: str
    to_member_id: str


@dataclass
class Notification(RowMixin):
    table_name: ClassVar[str] = "notifications"

    user_id: str
    league_id: str
    type: str
    trade_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[str] = None


@dataclass
class ActivityEvent(RowMixin):
    table_name: ClassVar[str] = "activity_events"

    league_id: str
    type: str
    payload_json: Optional[str] = None
    created_at: Optional[str] = None
