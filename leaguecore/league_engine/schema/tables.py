"""SQLAlchemy Core table definitions for the league transaction engine."""

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

leagues = Table(
    "leagues",
    metadata,
    Column("league_id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("number_of_teams", Integer, nullable=False),
    Column("phase", Text, nullable=False),
    Column("current_week", Integer, nullable=False, default=0),
    Column("settings_json", Text),
    Column("created_at", Text),
)

members = Table(
    "members",
    metadata,
    Column("member_id", Text, primary_key=True),
    Column("league_id", Text, nullable=False),
    Column("user_id", Text),
    Column("team_name", Text),
    Column("is_commissioner", Boolean, nullable=False, default=False),
    Column("is_bot", Boolean, nullable=False, default=False),
    Column("joined_at", Text),
    UniqueConstraint("league_id", "user_id", name="uq_members_league_user"),
    Index("idx_members_league", "league_id"),
)

players = Table(
    "players",
    metadata,
    Column("player_id", Text, primary_key=True),
    Column("full_name", Text, nullable=False),
    Column("position", Text, nullable=False),
    Column("nfl_team", Text),
    Column("status", Text),
    Column("injury_status", Text),
    Column("adp", Float),
    Index("idx_players_full_name", "full_name"),
    Index("idx_players_position", "position"),
)

drafts = Table(
    "drafts",
    metadata,
    Column("draft_id", Text, primary_key=True),
    Column("league_id", Text, nullable=False, unique=True),
    Column("status", Text, nullable=False),
    Column("number_of_rounds", Integer, nullable=False),
    Column("current_pick", Integer, nullable=False),
    Column("started_at", Text),
    Column("completed_at", Text),
    Column("created_at", Text),
)

draft_order = Table(
    "draft_order",
    metadata,
    Column("draft_id", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("position", Integer, nullable=False),
    PrimaryKeyConstraint("draft_id", "position"),
    UniqueConstraint("draft_id", "member_id", name="uq_draft_order_member"),
)

draft_picks = Table(
    "draft_picks",
    metadata,
    Column("draft_id", Text, nullable=False),
    Column("pick_number", Integer, nullable=False),
    Column("round", Integer, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("player_id", Text, nullable=False),
    Column("picked_at", Text),
    PrimaryKeyConstraint("draft_id", "pick_number"),
    UniqueConstraint("draft_id", "player_id", name="uq_draft_picks_player"),
    Index("idx_draft_picks_member", "draft_id", "member_id"),
)

roster_entries = Table(
    "roster_entries",
    metadata,
    Column("entry_id", Text, primary_key=True),
    Column("league_id", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("player_id", Text, nullable=False),
    Column("slot", Text, nullable=False),
    Column("acquired_via", Text, nullable=False),
    Column("acquired_at", Text),
    UniqueConstraint("league_id", "player_id", name="uq_roster_entries_player"),
    UniqueConstraint("member_id", "slot", name="uq_roster_entries_slot"),
    Index("idx_roster_entries_member", "member_id"),
)

trades = Table(
    "trades",
    metadata,
    Column("trade_id", Text, primary_key=True),
    Column("league_id", Text, nullable=False),
    Column("proposer_member_id", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("created_at", Text),
    Column("updated_at", Text),
    Index("idx_trades_league", "league_id"),
)

trade_participants = Table(
    "trade_participants",
    metadata,
    Column("trade_id", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("role", Text, nullable=False),
    Column("decision", Text, nullable=False),
    Column("seq", Integer, nullable=False),
    Column("decided_at", Text),
    PrimaryKeyConstraint("trade_id", "member_id"),
)

trade_items = Table(
    "trade_items",
    metadata,
    Column("trade_id", Text, nullable=False),
    Column("player_id", Text, nullable=False),
    Column("from_member_id", Text, nullable=False),
    Column("to_member_id", Text, nullable=False),
    PrimaryKeyConstraint("trade_id", "player_id"),
)

notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Text, nullable=False),
    Column("league_id", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("trade_id", Text),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("created_at", Text),
    Index("idx_notifications_user", "user_id", "is_read"),
)

activity_events = Table(
    "activity_events",
    metadata,
    Column("event_id", Integer, primary_key=True, autoincrement=True),
    Column("league_id", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("payload_json", Text),
    Column("created_at", Text),
    Index("idx_activity_events_league", "league_id"),
)

TABLES = {table.name: table for table in metadata.sorted_tables}
