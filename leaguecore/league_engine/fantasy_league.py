"""Facade wiring the draft, trade and roster engines to one database."""

from __future__ import annotations

import logging
import random
import threading
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy.engine import Engine

from .clock import PickClock, TimerFactory
from .config import EngineConfig, load_config
from .draft import DraftEngine
from .errors import NoAvailablePlayers
from .events import DatabaseEventSink, DatabasePhaseGateway, EventSink, PhaseGateway
from .locks import LockRegistry
from .rosters import RosterManager
from .schema.models import DRAFT_IN_PROGRESS, DRAFT_SCHEDULED, League, Member, Player
from .settings import LeagueSettings
from .store import events as event_store
from .store.sqlite_store import bulk_insert, create_engine, create_tables, utc_now
from .trades import TradeEngine

logger = logging.getLogger(__name__)


class FantasyLeague:
    def __init__(
        self,
        db_url: Optional[str] = None,
        *,
        config: Optional[EngineConfig] = None,
        engine: Optional[Engine] = None,
        rng: Optional[random.Random] = None,
        events: Optional[EventSink] = None,
        phases: Optional[PhaseGateway] = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        resolved_config = config or load_config()
        self.config = resolved_config
        self.engine = engine or create_engine(db_url or resolved_config.db_url)
        self.rng = rng or random.Random(resolved_config.random_seed)
        self.locks = LockRegistry()
        self.events = events or DatabaseEventSink()
        self.phases = phases or DatabasePhaseGateway()

        self.drafts = DraftEngine(
            self.engine,
            locks=self.locks,
            events=self.events,
            phases=self.phases,
            rng=self.rng,
            default_rounds=resolved_config.default_rounds,
        )
        self.trades = TradeEngine(self.engine, locks=self.locks, events=self.events)
        self.rosters = RosterManager(self.engine, locks=self.locks, events=self.events)
        self.clock = PickClock(self._on_clock_expired, timer_factory=timer_factory)

    def create_tables(self) -> None:
        create_tables(self.engine)

    def close(self) -> None:
        self.clock.cancel_all()
        self.engine.dispose()

    # Seeding; league and member management live outside this package.

    def add_league(
        self,
        league_id: str,
        name: str,
        number_of_teams: int,
        settings: Optional[LeagueSettings] = None,
        *,
        current_week: int = 0,
    ) -> League:
        league = League(
            league_id=league_id,
            name=name,
            number_of_teams=number_of_teams,
            phase="setup",
            current_week=current_week,
            settings_json=(settings or LeagueSettings()).to_json(),
            created_at=utc_now(),
        )
        with self.engine.begin() as conn:
            bulk_insert(conn, league.table_name, [league])
        return league

    def add_members(self, members: Sequence[Member]) -> int:
        with self.engine.begin() as conn:
            return bulk_insert(conn, Member.table_name, list(members))

    def add_players(self, players: Iterable[Player]) -> int:
        with self.engine.begin() as conn:
            return bulk_insert(conn, Player.table_name, list(players))

    def load_fixture(self, payload: Mapping[str, Any]) -> dict[str, int]:
        """Load a league, its members and a player catalog from a dict.

        Expected keys: "league" (league_id, name, number_of_teams, optional
        settings), "members" and "players" (lists of row dicts).
        """
        raw_league = dict(payload["league"])
        settings = LeagueSettings.model_validate(raw_league.pop("settings", None) or {})
        self.add_league(
            raw_league["league_id"],
            raw_league.get("name") or raw_league["league_id"],
            int(raw_league["number_of_teams"]),
            settings,
            current_week=int(raw_league.get("current_week") or 0),
        )
        members = [
            Member(league_id=raw_league["league_id"], **row) for row in payload.get("members", [])
        ]
        players = [Player(**row) for row in payload.get("players", [])]
        return {
            "members": self.add_members(members),
            "players": self.add_players(players),
        }

    # Draft

    def setup_draft(self, league_id: str, user_id: Optional[str], rounds: Optional[int] = None):
        return self.drafts.setup(league_id, user_id, rounds)

    def randomize_draft_order(self, draft_id: str, user_id: Optional[str]) -> list[str]:
        return self.drafts.reorder(draft_id, user_id)

    def start_draft(self, draft_id: str, user_id: Optional[str]) -> dict[str, Any]:
        draft = self.drafts.start(draft_id, user_id)
        self._after_pick(draft_id)
        return self.drafts.get_draft_state(draft.league_id, user_id)

    def make_pick(self, draft_id: str, user_id: Optional[str], player_id: str) -> dict[str, Any]:
        self.drafts.make_pick(draft_id, user_id, player_id)
        self._after_pick(draft_id)
        return self.drafts.get_draft_state(self.drafts.get_draft(draft_id).league_id, user_id)

    def auto_pick(self, draft_id: str, expected_pick: Optional[int] = None) -> dict[str, Any]:
        self.drafts.auto_pick(draft_id, expected_pick)
        self._after_pick(draft_id)
        return self.drafts.get_draft_state(self.drafts.get_draft(draft_id).league_id)

    def _on_clock_expired(self, draft_id: str, pick_number: int) -> None:
        logger.info("Pick clock expired for draft %s pick %s", draft_id, pick_number)
        self.auto_pick(draft_id, expected_pick=pick_number)

    def _after_pick(self, draft_id: str) -> None:
        """Run the bot cascade, then re-arm the clock for the next human."""
        try:
            self.drafts.process_bot_picks(draft_id)
        except NoAvailablePlayers:
            self.clock.cancel(draft_id)
            raise
        self._arm_clock(draft_id)

    def _arm_clock(self, draft_id: str) -> None:
        draft = self.drafts.get_draft(draft_id)
        if draft.status != DRAFT_IN_PROGRESS:
            self.clock.cancel(draft_id)
            return
        state = self.drafts.get_draft_state(draft.league_id)
        if state["on_the_clock_is_bot"]:
            self.clock.cancel(draft_id)
            return
        self.clock.arm(draft_id, draft.current_pick, state["seconds_per_pick"])

    def draft_state(self, league_id: str, user_id: Optional[str] = None) -> dict[str, Any]:
        return self.drafts.get_draft_state(league_id, user_id)

    def run_mock_draft(
        self, league_id: str, user_id: Optional[str], rounds: Optional[int] = None
    ) -> dict[str, Any]:
        """Drive a draft to completion without waiting on anyone.

        Bots pick by policy and humans get auto-picks; the pick clock is not
        used.
        """
        draft = self.drafts.get_draft_for_league(league_id)
        if draft is None:
            draft = self.drafts.setup(league_id, user_id, rounds)
        if draft.status == DRAFT_SCHEDULED:
            draft = self.drafts.start(draft.draft_id, user_id)
        while True:
            self.drafts.process_bot_picks(draft.draft_id)
            current = self.drafts.get_draft(draft.draft_id)
            if current.status != DRAFT_IN_PROGRESS:
                break
            self.drafts.auto_pick(draft.draft_id, expected_pick=current.current_pick)
        return self.drafts.get_draft_state(league_id, user_id)

    # Rosters

    def roster(self, member_id: str) -> dict[str, list[dict[str, Any]]]:
        return self.rosters.get_roster(member_id)

    def move_player(self, league_id: str, user_id: Optional[str], entry_id: str, target_slot: str):
        return self.rosters.move_player(league_id, user_id, entry_id, target_slot)

    def pickup(self, league_id: str, user_id: Optional[str], player_id: str):
        return self.rosters.pickup(league_id, user_id, player_id)

    def drop(self, league_id: str, user_id: Optional[str], entry_id: str):
        return self.rosters.drop(league_id, user_id, entry_id)

    def drop_and_add(self, league_id: str, user_id: Optional[str], entry_id: str, player_id: str):
        return self.rosters.drop_and_add(league_id, user_id, entry_id, player_id)

    def free_agents(self, league_id: str, **filters: Any) -> list[Player]:
        return self.rosters.free_agents(league_id, **filters)

    # Trades

    def propose_trade(
        self,
        league_id: str,
        user_id: Optional[str],
        recipient_member_ids: Sequence[str],
        items: Iterable[Mapping[str, Any]],
    ) -> dict[str, Any]:
        return self.trades.propose(league_id, user_id, recipient_member_ids, items)

    def accept_trade(self, trade_id: str, user_id: Optional[str]) -> dict[str, Any]:
        return self.trades.accept(trade_id, user_id)

    def decline_trade(self, trade_id: str, user_id: Optional[str]) -> dict[str, Any]:
        return self.trades.decline(trade_id, user_id)

    def cancel_trade(self, trade_id: str, user_id: Optional[str]) -> dict[str, Any]:
        return self.trades.cancel(trade_id, user_id)

    # Notifications

    def notifications(self, user_id: str, unread_only: bool = False) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            return event_store.list_notifications(conn, user_id, unread_only)

    def mark_read(self, trade_id: str, user_id: str) -> None:
        with self.engine.begin() as conn:
            self.events.mark_read(conn, trade_id, user_id)

    def activity(self, league_id: str) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            return event_store.list_activity(conn, league_id)
