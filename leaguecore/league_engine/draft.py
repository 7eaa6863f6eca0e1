"""Live snake draft engine."""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from .bots import AdpDraftPolicy, DraftPolicy, choose_random_player
from .config import DEFAULT_ROUNDS, MAX_ROUNDS
from .errors import (
    DraftAlreadyExists,
    DraftNotActive,
    LeagueNotFull,
    NotAMember,
    NotCommissioner,
    NotYourTurn,
    PlayerAlreadyDrafted,
    PlayerAlreadyOwned,
    RosterTooSmall,
    StateConflict,
    Unauthenticated,
    ValidationError,
)
from .events import DRAFT_COMPLETED, DatabaseEventSink, DatabasePhaseGateway, EventSink, PhaseGateway
from .locks import LockKey, LockRegistry, draft_key, league_key, member_keys
from .population import populate_rosters
from .schema.models import (
    DRAFT_COMPLETED as STATUS_COMPLETED,
    DRAFT_IN_PROGRESS,
    DRAFT_SCHEDULED,
    Draft,
    DraftPick,
    Member,
)
from .slots import generate_slot_layout
from .snake import member_for_pick, round_for_pick, total_picks
from .store import drafts as draft_store
from .store import leagues as league_store
from .store import players as player_store
from .store import rosters as roster_store
from .store.sqlite_store import new_id, utc_now

logger = logging.getLogger(__name__)


class DraftEngine:
    """Draft setup, turn order, human/auto/bot picks and completion.

    Each mutating call holds the draft's lock and runs in one transaction.
    Callers that want the bot cascade after a human pick call
    `process_bot_picks` next; it commits one bot pick per transaction.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        locks: Optional[LockRegistry] = None,
        events: Optional[EventSink] = None,
        phases: Optional[PhaseGateway] = None,
        rng: Optional[random.Random] = None,
        policy: Optional[DraftPolicy] = None,
        default_rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self.engine = engine
        self.locks = locks or LockRegistry()
        self.events = events or DatabaseEventSink()
        self.phases = phases or DatabasePhaseGateway()
        self.rng = rng or random.Random()
        self.policy = policy or AdpDraftPolicy()
        self.default_rounds = default_rounds

    # Helpers

    @staticmethod
    def _acting_member(conn, league_id: str, user_id: Optional[str]) -> Member:
        if not user_id:
            raise Unauthenticated()
        member = league_store.find_member_for_user(conn, league_id, user_id)
        if member is None:
            raise NotAMember()
        return member

    def _require_commissioner(self, conn, league_id: str, user_id: Optional[str]) -> Member:
        member = self._acting_member(conn, league_id, user_id)
        if not member.is_commissioner:
            raise NotCommissioner()
        return member

    @staticmethod
    def _require_full(conn, league_id: str) -> list[Member]:
        league = league_store.get_league(conn, league_id)
        members = league_store.list_members(conn, league_id)
        if len(members) < league.number_of_teams:
            raise LeagueNotFull(
                f"League has {len(members)} of {league.number_of_teams} teams."
            )
        return members

    @staticmethod
    def _require_roster_room(conn, league_id: str, rounds: int) -> None:
        settings = league_store.get_settings(conn, league_id)
        capacity = settings.starter_count + settings.bench_count
        if rounds > capacity:
            raise RosterTooSmall(
                f"{rounds} rounds exceed {capacity} starter and bench slots.",
                details={"rounds": rounds, "capacity": capacity},
            )

    # Setup

    def setup(self, league_id: str, user_id: Optional[str], rounds: Optional[int] = None) -> Draft:
        """Create the league's draft with a random order. Commissioner only."""
        rounds = self.default_rounds if rounds is None else rounds
        if not 1 <= rounds <= MAX_ROUNDS:
            raise ValidationError(f"Rounds must be between 1 and {MAX_ROUNDS}.")

        with self.locks.hold(league_key(league_id), reason="draft_setup"):
            with self.engine.begin() as conn:
                league_store.get_league(conn, league_id)
                self._require_commissioner(conn, league_id, user_id)
                members = self._require_full(conn, league_id)
                if draft_store.get_draft_for_league(conn, league_id) is not None:
                    raise DraftAlreadyExists()
                self._require_roster_room(conn, league_id, rounds)

                order = [member.member_id for member in members]
                self.rng.shuffle(order)
                draft = Draft(
                    draft_id=new_id(),
                    league_id=league_id,
                    status=DRAFT_SCHEDULED,
                    number_of_rounds=rounds,
                    current_pick=1,
                    created_at=utc_now(),
                )
                draft_store.insert_draft(conn, draft, order)
        logger.info("Draft %s scheduled for league %s (%d rounds)", draft.draft_id, league_id, rounds)
        return draft

    def reorder(self, draft_id: str, user_id: Optional[str]) -> list[str]:
        """Replace the order with a fresh random permutation before the draft starts."""
        with self.locks.hold(draft_key(draft_id), reason="draft_reorder"):
            with self.engine.begin() as conn:
                draft = draft_store.get_draft(conn, draft_id)
                self._require_commissioner(conn, draft.league_id, user_id)
                if draft.status != DRAFT_SCHEDULED:
                    raise StateConflict("Draft order can only change before the draft starts.")
                order = draft_store.get_order(conn, draft_id)
                self.rng.shuffle(order)
                draft_store.replace_order(conn, draft_id, order)
        logger.info("Draft %s order randomized", draft_id)
        return order

    def start(self, draft_id: str, user_id: Optional[str]) -> Draft:
        with self.locks.hold(draft_key(draft_id), reason="draft_start"):
            with self.engine.begin() as conn:
                draft = draft_store.get_draft(conn, draft_id)
                self._require_commissioner(conn, draft.league_id, user_id)
                if draft.status != DRAFT_SCHEDULED:
                    raise StateConflict("Draft has already started.")
                self._require_full(conn, draft.league_id)
                self._require_roster_room(conn, draft.league_id, draft.number_of_rounds)
                started_at = utc_now()
                draft_store.update_draft(
                    conn, draft_id, status=DRAFT_IN_PROGRESS, started_at=started_at
                )
                self.phases.set_phase(conn, draft.league_id, "drafting")
                draft.status = DRAFT_IN_PROGRESS
                draft.started_at = started_at
        logger.info("Draft %s started", draft_id)
        return draft

    # Turn order

    def on_the_clock(self, draft_id: str) -> Optional[str]:
        with self.engine.connect() as conn:
            return self._on_the_clock(conn, draft_store.get_draft(conn, draft_id))

    @staticmethod
    def _on_the_clock(conn, draft: Draft) -> Optional[str]:
        if draft.status != DRAFT_IN_PROGRESS:
            return None
        order = draft_store.get_order(conn, draft.draft_id)
        return member_for_pick(draft.current_pick, order)

    # Picks

    def _pick_keys(self, draft_id: str) -> list[LockKey]:
        """The draft lock plus every drafter's member lock.

        Any pick may be the last one, which populates every roster in the
        same transaction.
        """
        with self.engine.connect() as conn:
            order = draft_store.get_order(conn, draft_id)
        return [draft_key(draft_id), *member_keys(order)]

    def make_pick(self, draft_id: str, user_id: Optional[str], player_id: str) -> DraftPick:
        with self.locks.hold(*self._pick_keys(draft_id), reason="make_pick"):
            with self.engine.begin() as conn:
                draft = draft_store.get_draft(conn, draft_id)
                member = self._acting_member(conn, draft.league_id, user_id)
                if draft.status != DRAFT_IN_PROGRESS:
                    raise DraftNotActive()
                if self._on_the_clock(conn, draft) != member.member_id:
                    raise NotYourTurn()
                return self._apply_pick(conn, draft, member.member_id, player_id)

    def auto_pick(self, draft_id: str, expected_pick: Optional[int] = None) -> DraftPick:
        """Random pick for whoever is on the clock.

        With `expected_pick`, a call that arrives after that pick already
        landed fails with PlayerAlreadyDrafted instead of picking again.
        """
        with self.locks.hold(*self._pick_keys(draft_id), reason="auto_pick"):
            with self.engine.begin() as conn:
                draft = draft_store.get_draft(conn, draft_id)
                if draft.status != DRAFT_IN_PROGRESS:
                    raise DraftNotActive()
                if expected_pick is not None and draft.current_pick != expected_pick:
                    raise PlayerAlreadyDrafted(
                        f"Pick {expected_pick} has already been made.",
                        details={"expected_pick": expected_pick, "current_pick": draft.current_pick},
                    )
                member_id = self._on_the_clock(conn, draft)
                pool = player_store.available_for_draft(conn, draft.league_id, draft_id)
                player = choose_random_player(pool, self.rng)
                pick = self._apply_pick(conn, draft, member_id, player.player_id)
        logger.info(
            "Auto-picked %s for member %s at pick %s", player.full_name, member_id, pick.pick_number
        )
        return pick

    def process_bot_picks(self, draft_id: str) -> list[DraftPick]:
        """Let bots pick until a human is on the clock or the draft ends.

        Bounded by the number of picks left; raises NoAvailablePlayers when a
        bot is on the clock and the pool is empty.
        """
        picks: list[DraftPick] = []
        with self.engine.connect() as conn:
            draft = draft_store.get_draft(conn, draft_id)
            teams = len(draft_store.get_order(conn, draft_id))
        remaining = total_picks(draft.number_of_rounds, teams) - draft.current_pick + 1

        for _ in range(max(remaining, 0)):
            pick = self._bot_pick(draft_id)
            if pick is None:
                break
            picks.append(pick)
        return picks

    def _bot_pick(self, draft_id: str) -> Optional[DraftPick]:
        with self.locks.hold(*self._pick_keys(draft_id), reason="bot_pick"):
            with self.engine.begin() as conn:
                draft = draft_store.get_draft(conn, draft_id)
                member_id = self._on_the_clock(conn, draft)
                if member_id is None:
                    return None
                member = league_store.get_member(conn, member_id)
                if not member.is_bot:
                    return None
                pool = player_store.available_for_draft(conn, draft.league_id, draft_id)
                teams = len(draft_store.get_order(conn, draft_id))
                draft_round = round_for_pick(draft.current_pick, teams)
                player = self.policy.choose(pool, draft_round, self.rng)
                pick = self._apply_pick(conn, draft, member_id, player.player_id)
        logger.info(
            "Bot %s drafted %s (%s) at pick %s",
            member_id,
            player.full_name,
            player.position,
            pick.pick_number,
        )
        return pick

    def _apply_pick(self, conn, draft: Draft, member_id: str, player_id: str) -> DraftPick:
        player_store.get_player(conn, player_id)
        if draft_store.is_player_drafted(conn, draft.draft_id, player_id):
            raise PlayerAlreadyDrafted(details={"player_id": player_id})
        if roster_store.find_entry_for_player(conn, draft.league_id, player_id) is not None:
            raise PlayerAlreadyOwned(details={"player_id": player_id})

        order = draft_store.get_order(conn, draft.draft_id)
        pick = DraftPick(
            draft_id=draft.draft_id,
            pick_number=draft.current_pick,
            round=round_for_pick(draft.current_pick, len(order)),
            member_id=member_id,
            player_id=player_id,
            picked_at=utc_now(),
        )
        try:
            draft_store.insert_pick(conn, pick)
        except IntegrityError as exc:
            raise PlayerAlreadyDrafted(details={"pick_number": pick.pick_number}) from exc

        if draft.current_pick >= total_picks(draft.number_of_rounds, len(order)):
            self._complete(conn, draft)
        elif not draft_store.advance_pick(conn, draft.draft_id, draft.current_pick):
            raise PlayerAlreadyDrafted(f"Pick {draft.current_pick} has already been made.")
        return pick

    def _complete(self, conn, draft: Draft) -> None:
        completed_at = utc_now()
        draft_store.update_draft(
            conn, draft.draft_id, status=STATUS_COMPLETED, completed_at=completed_at
        )
        layout = generate_slot_layout(league_store.get_settings(conn, draft.league_id))
        placed = populate_rosters(conn, draft, layout)
        self.phases.set_phase(conn, draft.league_id, "setup")
        self.events.record_activity(
            conn,
            draft.league_id,
            DRAFT_COMPLETED,
            {"draft_id": draft.draft_id, "picks": draft.current_pick},
        )
        logger.info(
            "Draft %s completed; %d players placed", draft.draft_id, sum(placed.values())
        )

    # Reads

    def available_players(
        self,
        draft_id: str,
        *,
        search: Optional[str] = None,
        position: Optional[str] = None,
        limit: Optional[int] = 50,
    ):
        with self.engine.connect() as conn:
            draft = draft_store.get_draft(conn, draft_id)
            return player_store.available_for_draft(
                conn, draft.league_id, draft_id, search=search, position=position, limit=limit
            )

    def get_draft(self, draft_id: str) -> Draft:
        with self.engine.connect() as conn:
            return draft_store.get_draft(conn, draft_id)

    def get_draft_for_league(self, league_id: str) -> Optional[Draft]:
        with self.engine.connect() as conn:
            return draft_store.get_draft_for_league(conn, league_id)

    def get_draft_state(self, league_id: str, user_id: Optional[str] = None) -> dict[str, Any]:
        """Snapshot of a league's draft as seen by `user_id`.

        Returns:
            {
                "draft": {...} | None,
                "order": [member_id, ...],
                "picks": [{...}, ...],
                "on_the_clock": member_id | None,
                "on_the_clock_is_bot": bool,
                "my_member_id": str | None,
                "is_commissioner": bool,
                "number_of_teams": int,
                "seconds_per_pick": int
            }
        """
        with self.engine.connect() as conn:
            league = league_store.get_league(conn, league_id)
            settings = league_store.get_settings(conn, league_id)
            me = (
                league_store.find_member_for_user(conn, league_id, user_id)
                if user_id
                else None
            )
            draft = draft_store.get_draft_for_league(conn, league_id)
            state: dict[str, Any] = {
                "draft": draft.to_row() if draft else None,
                "order": [],
                "picks": [],
                "on_the_clock": None,
                "on_the_clock_is_bot": False,
                "my_member_id": me.member_id if me else None,
                "is_commissioner": bool(me and me.is_commissioner),
                "number_of_teams": league.number_of_teams,
                "seconds_per_pick": settings.draft_timer_seconds,
            }
            if draft is None:
                return state
            state["order"] = draft_store.get_order(conn, draft.draft_id)
            state["picks"] = [pick.to_row() for pick in draft_store.list_picks(conn, draft.draft_id)]
            on_clock = self._on_the_clock(conn, draft)
            state["on_the_clock"] = on_clock
            if on_clock:
                state["on_the_clock_is_bot"] = league_store.get_member(conn, on_clock).is_bot
            return state
