"""Multi-team trade negotiation and execution."""

from __future__ import annotations

from collections import Counter, defaultdict
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy.engine import Engine

from . import bots
from .errors import (
    InsufficientRosterSpace,
    InvalidTrade,
    NotAMember,
    NotAParticipant,
    NotOwner,
    NotPending,
    NotProposer,
    TradesClosed,
    Unauthenticated,
)
from .events import (
    TRADE_ACCEPTED,
    TRADE_COMPLETED,
    TRADE_DECLINED,
    TRADE_PROPOSED,
    DatabaseEventSink,
    EventSink,
)
from .locks import LockRegistry, member_keys
from .rosters import layout_for_league, open_slots, place
from .schema.models import (
    ACQUIRED_TRADE,
    DECISION_ACCEPTED,
    DECISION_DECLINED,
    DECISION_PENDING,
    ROLE_PROPOSER,
    ROLE_RECIPIENT,
    TRADE_CANCELED,
    TRADE_COMPLETED as STATUS_COMPLETED,
    TRADE_DECLINED as STATUS_DECLINED,
    TRADE_PROPOSED as STATUS_PROPOSED,
    Member,
    RosterEntry,
    Trade,
    TradeItem,
    TradeParticipant,
)
from .slots import SlotLayout, can_fill_slot
from .store import leagues as league_store
from .store import players as player_store
from .store import rosters as roster_store
from .store import trades as trade_store
from .store.sqlite_store import new_id, utc_now

logger = logging.getLogger(__name__)


def _coerce_items(items: Iterable[Mapping[str, Any]]) -> list[dict[str, str]]:
    coerced = []
    for item in items:
        try:
            coerced.append(
                {
                    "player_id": str(item["player_id"]),
                    "from_member_id": str(item["from_member_id"]),
                    "to_member_id": str(item["to_member_id"]),
                }
            )
        except KeyError as exc:
            raise InvalidTrade(f"Trade item is missing {exc.args[0]}.") from exc
    return coerced


def validate_shape(
    proposer_id: str, recipient_ids: Sequence[str], items: Sequence[Mapping[str, str]]
) -> None:
    """Structural checks that need no database access."""
    if not recipient_ids:
        raise InvalidTrade("At least one recipient team is required.")
    if not items:
        raise InvalidTrade("At least one trade item is required.")
    if len(set(recipient_ids)) != len(recipient_ids):
        raise InvalidTrade("Duplicate recipient teams.")
    if proposer_id in recipient_ids:
        raise InvalidTrade("You cannot trade with yourself.")

    participants = {proposer_id, *recipient_ids}
    seen: set[str] = set()
    for item in items:
        if item["player_id"] in seen:
            raise InvalidTrade("A player cannot appear more than once in a trade.")
        seen.add(item["player_id"])
        if item["from_member_id"] == item["to_member_id"]:
            raise InvalidTrade("From and To team must be different for each item.")
        if item["from_member_id"] not in participants or item["to_member_id"] not in participants:
            raise InvalidTrade("From/To teams must be participants in the trade.")


def net_incoming(items: Iterable[Mapping[str, str]]) -> Counter:
    """Per-member incoming minus outgoing item counts."""
    deltas: Counter = Counter()
    for item in items:
        deltas[item["to_member_id"]] += 1
        deltas[item["from_member_id"]] -= 1
    return deltas


def plan_placements(
    conn,
    layout: SlotLayout,
    items: Sequence[Mapping[str, str]],
    outgoing: Sequence[RosterEntry],
) -> dict[str, str]:
    """Destination slot for every traded player once all outgoing entries leave.

    A player takes the receiver's first open bench slot, else the first open
    starter slot it may fill. Starter slots the trade vacates count as open.

    Raises:
        InsufficientRosterSpace: a receiver has no slot left for a player.
    """
    vacated: dict[str, set[str]] = defaultdict(set)
    for entry in outgoing:
        vacated[entry.member_id].add(entry.slot)
    catalog = player_store.get_players(conn, [item["player_id"] for item in items])

    taken: dict[str, set[str]] = {}
    plan: dict[str, str] = {}
    for item in items:
        member_id = item["to_member_id"]
        if member_id not in taken:
            taken[member_id] = roster_store.occupied_slots(conn, member_id) - vacated[member_id]
        occupied = taken[member_id]
        player = catalog[item["player_id"]]
        slot = next((s for s in layout.bench_slots if s not in occupied), None)
        if slot is None:
            slot = next(
                (
                    s
                    for s in layout.starter_slots
                    if s not in occupied
                    and can_fill_slot(layout, s, player.position, player.injury_status)
                ),
                None,
            )
        if slot is None:
            raise InsufficientRosterSpace(
                f"No open slot for {player.full_name} on the receiving roster.",
                details={"member_id": member_id, "player_id": player.player_id},
            )
        occupied.add(slot)
        plan[player.player_id] = slot
    return plan


class TradeEngine:
    """Propose, respond to, cancel and execute trades.

    Every mutation holds the member locks of all trade participants and runs
    in one transaction. Bot recipients answer synchronously during propose.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        locks: Optional[LockRegistry] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        self.engine = engine
        self.locks = locks or LockRegistry()
        self.events = events or DatabaseEventSink()

    @staticmethod
    def _acting_member(conn, league_id: str, user_id: Optional[str]) -> Member:
        if not user_id:
            raise Unauthenticated()
        league_store.get_league(conn, league_id)
        member = league_store.find_member_for_user(conn, league_id, user_id)
        if member is None:
            raise NotAMember()
        return member

    # Propose

    def propose(
        self,
        league_id: str,
        user_id: Optional[str],
        recipient_member_ids: Sequence[str],
        items: Iterable[Mapping[str, Any]],
    ) -> dict[str, Any]:
        recipients = [str(member_id) for member_id in recipient_member_ids]
        requested = _coerce_items(items)
        with self.engine.connect() as conn:
            proposer = self._acting_member(conn, league_id, user_id)
        validate_shape(proposer.member_id, recipients, requested)

        participants = [proposer.member_id, *recipients]
        with self.locks.hold(*member_keys(participants), reason="trade_propose"):
            with self.engine.begin() as conn:
                self._check_window(conn, league_id)
                self._check_members(conn, league_id, recipients)
                layout = layout_for_league(conn, league_id)
                outgoing = self._check_ownership(conn, league_id, requested)
                self._check_bench_space(conn, layout, requested)
                plan_placements(conn, layout, requested, outgoing)

                now = utc_now()
                trade = Trade(
                    trade_id=new_id(),
                    league_id=league_id,
                    proposer_member_id=proposer.member_id,
                    status=STATUS_PROPOSED,
                    created_at=now,
                    updated_at=now,
                )
                rows = [
                    TradeParticipant(
                        trade_id=trade.trade_id,
                        member_id=proposer.member_id,
                        role=ROLE_PROPOSER,
                        decision=DECISION_ACCEPTED,
                        seq=0,
                        decided_at=now,
                    )
                ] + [
                    TradeParticipant(
                        trade_id=trade.trade_id,
                        member_id=member_id,
                        role=ROLE_RECIPIENT,
                        decision=DECISION_PENDING,
                        seq=index,
                    )
                    for index, member_id in enumerate(recipients, start=1)
                ]
                trade_items = [TradeItem(trade_id=trade.trade_id, **item) for item in requested]
                trade_store.insert_trade(conn, trade, rows, trade_items)

                for member_id in recipients:
                    member = league_store.get_member(conn, member_id)
                    if member.user_id and not member.is_bot:
                        self.events.notify(
                            conn, member.user_id, league_id, TRADE_PROPOSED, trade.trade_id
                        )
                logger.info(
                    "Trade %s proposed by %s to %s (%d items)",
                    trade.trade_id,
                    proposer.member_id,
                    ", ".join(recipients),
                    len(trade_items),
                )

                self._run_bot_responses(conn, trade.trade_id)
                return self._snapshot(conn, trade.trade_id)

    def _check_window(self, conn, league_id: str) -> None:
        league = league_store.get_league(conn, league_id)
        settings = league_store.get_settings(conn, league_id)
        if not settings.trades_enabled:
            raise TradesClosed("Trades are disabled in this league.")
        deadline = settings.trade_deadline_week
        if deadline is not None and league.current_week > deadline:
            raise TradesClosed(f"The trade deadline (week {deadline}) has passed.")

    @staticmethod
    def _check_members(conn, league_id: str, recipients: Sequence[str]) -> None:
        league_members = {m.member_id for m in league_store.list_members(conn, league_id)}
        for member_id in recipients:
            if member_id not in league_members:
                raise InvalidTrade("Invalid recipient team.", details={"member_id": member_id})

    @staticmethod
    def _check_ownership(
        conn, league_id: str, items: Sequence[Mapping[str, str]]
    ) -> list[RosterEntry]:
        entries = []
        for item in items:
            entry = roster_store.find_entry_for_player(conn, league_id, item["player_id"])
            if entry is None or entry.member_id != item["from_member_id"]:
                raise NotOwner(
                    "Team does not own the player being traded.",
                    details={"player_id": item["player_id"], "member_id": item["from_member_id"]},
                )
            entries.append(entry)
        return entries

    @staticmethod
    def _check_bench_space(
        conn, layout: SlotLayout, items: Sequence[Mapping[str, str]]
    ) -> None:
        for member_id, delta in net_incoming(items).items():
            if delta <= 0:
                continue
            available = len(open_slots(conn, member_id, layout.bench_slots))
            if available < delta:
                raise InsufficientRosterSpace(
                    "A team does not have enough open bench slots for this trade.",
                    details={"member_id": member_id, "needed": delta, "open": available},
                )

    # Bot responses

    def _run_bot_responses(self, conn, trade_id: str) -> None:
        """Each pending bot recipient answers in order; the first decline ends it."""
        items = trade_store.list_items(conn, trade_id)
        catalog = player_store.get_players(conn, [item.player_id for item in items])
        for participant in trade_store.list_participants(conn, trade_id):
            if participant.role != ROLE_RECIPIENT or participant.decision != DECISION_PENDING:
                continue
            member = league_store.get_member(conn, participant.member_id)
            if not member.is_bot:
                continue
            receiving = [catalog[i.player_id].adp for i in items if i.to_member_id == member.member_id]
            giving = [catalog[i.player_id].adp for i in items if i.from_member_id == member.member_id]
            verdict = bots.evaluate_trade(receiving, giving)
            logger.info(
                "Bot %s %s trade %s (receiving avg ADP %.1f, giving avg ADP %.1f)",
                member.member_id,
                "accepts" if verdict.accept else "declines",
                trade_id,
                verdict.receiving_avg_adp,
                verdict.giving_avg_adp,
            )
            if verdict.accept:
                if self._record_acceptance(conn, trade_id, member.member_id):
                    return
            else:
                self._record_decline(conn, trade_id, member.member_id)
                return

    # Responses

    def _load_for_response(self, trade_id: str, user_id: Optional[str]):
        with self.engine.connect() as conn:
            trade = trade_store.get_trade(conn, trade_id)
            member = self._acting_member(conn, trade.league_id, user_id)
            participants = [p.member_id for p in trade_store.list_participants(conn, trade_id)]
        return trade, member, participants

    @staticmethod
    def _require_pending_recipient(conn, trade_id: str, member_id: str) -> None:
        trade = trade_store.get_trade(conn, trade_id)
        if trade.status != STATUS_PROPOSED:
            raise NotPending()
        mine = next(
            (
                p
                for p in trade_store.list_participants(conn, trade_id)
                if p.member_id == member_id and p.role == ROLE_RECIPIENT
            ),
            None,
        )
        if mine is None:
            raise NotAParticipant()
        if mine.decision != DECISION_PENDING:
            raise NotPending("You have already responded to this trade.")

    def accept(self, trade_id: str, user_id: Optional[str]) -> dict[str, Any]:
        trade, member, participants = self._load_for_response(trade_id, user_id)
        with self.locks.hold(*member_keys(participants), reason="trade_accept"):
            with self.engine.begin() as conn:
                self._require_pending_recipient(conn, trade_id, member.member_id)
                self._record_acceptance(conn, trade_id, member.member_id)
                return self._snapshot(conn, trade_id)

    def decline(self, trade_id: str, user_id: Optional[str]) -> dict[str, Any]:
        trade, member, participants = self._load_for_response(trade_id, user_id)
        with self.locks.hold(*member_keys(participants), reason="trade_decline"):
            with self.engine.begin() as conn:
                self._require_pending_recipient(conn, trade_id, member.member_id)
                self._record_decline(conn, trade_id, member.member_id)
                return self._snapshot(conn, trade_id)

    def cancel(self, trade_id: str, user_id: Optional[str]) -> dict[str, Any]:
        trade, member, participants = self._load_for_response(trade_id, user_id)
        if trade.proposer_member_id != member.member_id:
            raise NotProposer()
        with self.locks.hold(*member_keys(participants), reason="trade_cancel"):
            with self.engine.begin() as conn:
                if not trade_store.set_status(conn, trade_id, TRADE_CANCELED, utc_now()):
                    raise NotPending()
                self.events.mark_read(conn, trade_id)
                logger.info("Trade %s canceled by proposer", trade_id)
                return self._snapshot(conn, trade_id)

    def _notify_proposer(self, conn, trade: Trade, kind: str) -> None:
        proposer = league_store.get_member(conn, trade.proposer_member_id)
        if proposer.user_id:
            self.events.notify(conn, proposer.user_id, trade.league_id, kind, trade.trade_id)

    def _record_acceptance(self, conn, trade_id: str, member_id: str) -> bool:
        """Record an acceptance; returns True once the trade left `proposed`."""
        trade_store.set_decision(conn, trade_id, member_id, DECISION_ACCEPTED, utc_now())
        trade = trade_store.get_trade(conn, trade_id)
        self._notify_proposer(conn, trade, TRADE_ACCEPTED)
        participants = trade_store.list_participants(conn, trade_id)
        if all(p.decision == DECISION_ACCEPTED for p in participants):
            self._execute(conn, trade)
            return True
        return False

    def _record_decline(self, conn, trade_id: str, member_id: str) -> None:
        now = utc_now()
        trade_store.set_decision(conn, trade_id, member_id, DECISION_DECLINED, now)
        trade_store.set_status(conn, trade_id, STATUS_DECLINED, now)
        trade = trade_store.get_trade(conn, trade_id)
        self._notify_proposer(conn, trade, TRADE_DECLINED)
        logger.info("Trade %s declined by %s", trade_id, member_id)

    # Execution

    def _execute(self, conn, trade: Trade) -> bool:
        """Move every item or none.

        Ownership and placement are re-checked with the same rules propose
        used, so only a roster change since the proposal cancels the trade.
        """
        items = [item.to_row() for item in trade_store.list_items(conn, trade.trade_id)]
        layout = layout_for_league(conn, trade.league_id)

        outgoing = []
        for item in items:
            entry = roster_store.find_entry_for_player(conn, trade.league_id, item["player_id"])
            if entry is None or entry.member_id != item["from_member_id"]:
                return self._cancel_stale(conn, trade, f"{item['player_id']} changed hands")
            outgoing.append(entry)
        try:
            plan = plan_placements(conn, layout, items, outgoing)
        except InsufficientRosterSpace as exc:
            return self._cancel_stale(conn, trade, exc.message)

        for entry in outgoing:
            roster_store.delete_entry(conn, entry.entry_id)
        for item in items:
            place(
                conn,
                trade.league_id,
                item["to_member_id"],
                item["player_id"],
                plan[item["player_id"]],
                ACQUIRED_TRADE,
                layout,
            )

        trade_store.set_status(conn, trade.trade_id, STATUS_COMPLETED, utc_now())
        for participant in trade_store.list_participants(conn, trade.trade_id):
            member = league_store.get_member(conn, participant.member_id)
            if member.user_id:
                self.events.mark_read(conn, trade.trade_id, member.user_id)
                self.events.notify(
                    conn, member.user_id, trade.league_id, TRADE_COMPLETED, trade.trade_id
                )
        self.events.record_activity(
            conn,
            trade.league_id,
            TRADE_COMPLETED,
            {
                "trade_id": trade.trade_id,
                "items": items,
            },
        )
        logger.info("Trade %s executed (%d players moved)", trade.trade_id, len(items))
        return True

    def _cancel_stale(self, conn, trade: Trade, reason: str) -> bool:
        trade_store.set_status(conn, trade.trade_id, TRADE_CANCELED, utc_now())
        self.events.mark_read(conn, trade.trade_id)
        logger.warning("Trade %s canceled at execution: %s", trade.trade_id, reason)
        return False

    # Reads

    @staticmethod
    def _snapshot(conn, trade_id: str) -> dict[str, Any]:
        return {
            "trade": trade_store.get_trade(conn, trade_id).to_row(),
            "participants": [p.to_row() for p in trade_store.list_participants(conn, trade_id)],
            "items": [i.to_row() for i in trade_store.list_items(conn, trade_id)],
        }

    def get_trade(self, trade_id: str) -> dict[str, Any]:
        with self.engine.connect() as conn:
            return self._snapshot(conn, trade_id)

    def list_trades(self, league_id: str, status: Optional[str] = None) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            return [
                self._snapshot(conn, trade.trade_id)
                for trade in trade_store.list_trades(conn, league_id, status)
            ]

    def inbox(self, league_id: str, user_id: Optional[str]) -> list[dict[str, Any]]:
        """Proposed trades waiting on the acting member's decision."""
        with self.engine.connect() as conn:
            member = self._acting_member(conn, league_id, user_id)
            return [
                self._snapshot(conn, trade.trade_id)
                for trade in trade_store.list_pending_for_member(conn, member.member_id)
            ]
