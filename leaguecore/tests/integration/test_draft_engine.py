"""Draft engine behaviour against an in-memory database."""

import threading

import pytest

from leaguecore.league_engine.errors import (
    DraftAlreadyExists,
    DraftNotActive,
    LeagueError,
    LeagueNotFull,
    NoAvailablePlayers,
    NotCommissioner,
    NotYourTurn,
    PlayerAlreadyDrafted,
    PlayerAlreadyOwned,
    RosterTooSmall,
    StateConflict,
    Unauthenticated,
    ValidationError,
)
from leaguecore.league_engine.schema.models import Member, Player
from leaguecore.league_engine.settings import LeagueSettings
from leaguecore.league_engine.store import leagues as league_store

LEAGUE_ID = "L1"

SNAKE_4x3 = ["m-a", "m-b", "m-c", "m-d", "m-d", "m-c", "m-b", "m-a", "m-a", "m-b", "m-c", "m-d"]


def _phase(engine):
    with engine.connect() as conn:
        return league_store.get_league(conn, LEAGUE_ID).phase


def _started(league, force_order, order, rounds=3, user="u-a"):
    draft = league.setup_draft(LEAGUE_ID, user, rounds=rounds)
    force_order(draft.draft_id, order)
    league.start_draft(draft.draft_id, user)
    return draft


def _best_available(league, draft_id):
    return league.drafts.available_players(draft_id, limit=1)[0].player_id


class TestSetup:
    def test_commissioner_only(self, seed, league):
        seed()
        with pytest.raises(NotCommissioner):
            league.setup_draft(LEAGUE_ID, "u-b")
        with pytest.raises(Unauthenticated):
            league.setup_draft(LEAGUE_ID, None)

    def test_league_must_be_full(self, league):
        league.add_league(LEAGUE_ID, "Half Full", 4)
        league.add_members(
            [
                Member(member_id="m-a", league_id=LEAGUE_ID, user_id="u-a", is_commissioner=True),
                Member(member_id="m-b", league_id=LEAGUE_ID, user_id="u-b"),
            ]
        )
        with pytest.raises(LeagueNotFull):
            league.setup_draft(LEAGUE_ID, "u-a")

    def test_creates_scheduled_draft_with_permutation(self, seed, league):
        members = seed()
        draft = league.setup_draft(LEAGUE_ID, "u-a", rounds=3)

        state = league.draft_state(LEAGUE_ID, "u-a")
        assert state["draft"]["status"] == "scheduled"
        assert state["draft"]["current_pick"] == 1
        assert state["draft"]["number_of_rounds"] == 3
        assert sorted(state["order"]) == sorted(m.member_id for m in members)
        assert state["on_the_clock"] is None
        assert league.drafts.get_draft(draft.draft_id) == league.drafts.get_draft_for_league(LEAGUE_ID)

    def test_one_draft_per_league(self, seed, league):
        seed()
        league.setup_draft(LEAGUE_ID, "u-a")
        with pytest.raises(DraftAlreadyExists):
            league.setup_draft(LEAGUE_ID, "u-a")

    @pytest.mark.parametrize("rounds", [0, 21])
    def test_round_bounds(self, seed, league, rounds):
        seed()
        with pytest.raises(ValidationError):
            league.setup_draft(LEAGUE_ID, "u-a", rounds=rounds)

    def test_rejects_rounds_beyond_roster_size(self, seed, league):
        seed(settings=LeagueSettings(bench_count=1))
        with pytest.raises(RosterTooSmall):
            league.setup_draft(LEAGUE_ID, "u-a", rounds=11)

    def test_reorder_only_before_start(self, seed, league):
        members = seed()
        draft = league.setup_draft(LEAGUE_ID, "u-a", rounds=3)

        order = league.randomize_draft_order(draft.draft_id, "u-a")
        assert sorted(order) == sorted(m.member_id for m in members)
        with pytest.raises(NotCommissioner):
            league.randomize_draft_order(draft.draft_id, "u-c")

        league.start_draft(draft.draft_id, "u-a")
        with pytest.raises(StateConflict):
            league.randomize_draft_order(draft.draft_id, "u-a")

    def test_start_flips_phase(self, seed, league, engine):
        seed()
        draft = league.setup_draft(LEAGUE_ID, "u-a", rounds=3)
        with pytest.raises(NotCommissioner):
            league.start_draft(draft.draft_id, "u-b")

        league.start_draft(draft.draft_id, "u-a")

        assert _phase(engine) == "drafting"
        with pytest.raises(StateConflict):
            league.start_draft(draft.draft_id, "u-a")


class TestPicks:
    def test_four_team_three_round_draft(self, seed, league, engine, force_order):
        members = seed()
        users = {m.member_id: m.user_id for m in members}
        draft = _started(league, force_order, [m.member_id for m in members])

        for pick_number, member_id in enumerate(SNAKE_4x3, start=1):
            state = league.draft_state(LEAGUE_ID)
            assert state["draft"]["current_pick"] == pick_number
            assert state["on_the_clock"] == member_id
            league.make_pick(draft.draft_id, users[member_id], _best_available(league, draft.draft_id))

        state = league.draft_state(LEAGUE_ID)
        assert state["draft"]["status"] == "completed"
        assert state["draft"]["completed_at"] is not None
        assert state["on_the_clock"] is None
        assert [p["member_id"] for p in state["picks"]] == SNAKE_4x3
        assert [p["round"] for p in state["picks"]] == [1] * 4 + [2] * 4 + [3] * 4
        assert _phase(engine) == "setup"
        assert league.clock.armed_pick(draft.draft_id) is None

        for member in members:
            roster = league.roster(member.member_id)
            held = [row for group in roster.values() for row in group if row["player_id"]]
            assert len(held) == 3
            assert {row["acquired_via"] for row in held} == {"draft"}
        assert [e["type"] for e in league.activity(LEAGUE_ID)] == ["draft_completed"]

    def test_not_your_turn(self, seed, league, force_order):
        members = seed()
        draft = _started(league, force_order, [m.member_id for m in members])
        with pytest.raises(NotYourTurn):
            league.make_pick(draft.draft_id, "u-b", "rb01")

    def test_player_already_drafted(self, seed, league, force_order):
        members = seed()
        draft = _started(league, force_order, [m.member_id for m in members])
        league.make_pick(draft.draft_id, "u-a", "rb01")
        with pytest.raises(PlayerAlreadyDrafted):
            league.make_pick(draft.draft_id, "u-b", "rb01")

    def test_picks_rejected_before_start(self, seed, league):
        seed()
        draft = league.setup_draft(LEAGUE_ID, "u-a", rounds=3)
        with pytest.raises(DraftNotActive):
            league.make_pick(draft.draft_id, "u-a", "rb01")

    def test_rostered_player_cannot_be_drafted(self, seed, league, force_order):
        members = seed()
        draft = _started(league, force_order, [m.member_id for m in members])
        league.pickup(LEAGUE_ID, "u-c", "wr01")

        available = {p.player_id for p in league.drafts.available_players(draft.draft_id, limit=None)}
        assert "wr01" not in available
        with pytest.raises(PlayerAlreadyOwned):
            league.make_pick(draft.draft_id, "u-a", "wr01")

    def test_current_pick_only_moves_forward(self, seed, league, force_order):
        members = seed()
        users = {m.member_id: m.user_id for m in members}
        draft = _started(league, force_order, [m.member_id for m in members], rounds=2)

        history = [league.drafts.get_draft(draft.draft_id).current_pick]
        for member_id in SNAKE_4x3[:7]:
            with pytest.raises(LeagueError):
                league.make_pick(draft.draft_id, "u-a" if member_id != "m-a" else "u-b", "k01")
            assert league.drafts.get_draft(draft.draft_id).current_pick == history[-1]
            league.make_pick(draft.draft_id, users[member_id], _best_available(league, draft.draft_id))
            history.append(league.drafts.get_draft(draft.draft_id).current_pick)

        assert history == sorted(set(history))
        assert league.drafts.get_draft(draft.draft_id).status == "in_progress"
        league.make_pick(draft.draft_id, "u-a", _best_available(league, draft.draft_id))
        final = league.drafts.get_draft(draft.draft_id)
        assert final.status == "completed"
        assert final.current_pick == 8


class TestFreeAgentsDuringDraft:
    def test_drafted_player_stays_off_the_wire_until_placed(self, seed, league, force_order):
        members = seed()
        users = {m.member_id: m.user_id for m in members}
        draft = _started(league, force_order, [m.member_id for m in members])
        first = _best_available(league, draft.draft_id)
        league.make_pick(draft.draft_id, "u-a", first)

        free_agents = {p.player_id for p in league.free_agents(LEAGUE_ID, limit=None)}
        assert first not in free_agents
        assert "k06" in free_agents
        with pytest.raises(PlayerAlreadyDrafted):
            league.pickup(LEAGUE_ID, "u-d", first)

        league.pickup(LEAGUE_ID, "u-d", "k06")
        for member_id in SNAKE_4x3[1:]:
            league.make_pick(draft.draft_id, users[member_id], _best_available(league, draft.draft_id))

        assert league.draft_state(LEAGUE_ID)["draft"]["status"] == "completed"
        held = {row["player_id"]: row for group in league.roster("m-a").values() for row in group}
        assert first in held
        assert "k06" in {row["player_id"] for group in league.roster("m-d").values() for row in group}

        league.drop(LEAGUE_ID, "u-a", held[first]["entry_id"])
        assert first in {p.player_id for p in league.free_agents(LEAGUE_ID, limit=None)}
        league.pickup(LEAGUE_ID, "u-b", first)


class TestAutoPick:
    def test_clock_armed_for_human_and_fires_auto_pick(self, seed, league, timers, force_order):
        members = seed()
        draft = _started(league, force_order, [m.member_id for m in members])

        armed = timers[-1]
        assert armed.args == (draft.draft_id, 1)
        assert armed.interval == 120

        armed.fire()

        state = league.draft_state(LEAGUE_ID)
        assert len(state["picks"]) == 1
        assert state["picks"][0]["member_id"] == "m-a"
        assert timers[-1].args == (draft.draft_id, 2)

    def test_stale_clock_after_human_pick_is_dropped(self, seed, league, timers, force_order):
        members = seed()
        draft = _started(league, force_order, [m.member_id for m in members])
        stale = timers[-1]

        league.make_pick(draft.draft_id, "u-a", "rb01")
        stale.fire()

        state = league.draft_state(LEAGUE_ID)
        assert [(p["pick_number"], p["player_id"]) for p in state["picks"]] == [(1, "rb01")]
        assert state["draft"]["current_pick"] == 2
        with pytest.raises(PlayerAlreadyDrafted):
            league.drafts.auto_pick(draft.draft_id, expected_pick=1)

    def test_concurrent_human_and_auto_pick(self, seed, league, force_order):
        members = seed()
        draft = _started(league, force_order, [m.member_id for m in members])
        outcomes = []
        barrier = threading.Barrier(2)

        def _human():
            barrier.wait()
            try:
                league.drafts.make_pick(draft.draft_id, "u-a", "rb01")
                outcomes.append("human")
            except (NotYourTurn, PlayerAlreadyDrafted) as exc:
                outcomes.append(exc.code)

        def _auto():
            barrier.wait()
            try:
                league.drafts.auto_pick(draft.draft_id, expected_pick=1)
                outcomes.append("auto")
            except PlayerAlreadyDrafted as exc:
                outcomes.append(exc.code)

        threads = [threading.Thread(target=_human), threading.Thread(target=_auto)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        state = league.draft_state(LEAGUE_ID)
        assert len([p for p in state["picks"] if p["pick_number"] == 1]) == 1
        assert len(state["picks"]) == 1
        assert state["draft"]["current_pick"] == 2
        assert len([o for o in outcomes if o in {"human", "auto"}]) == 1


class TestBotTurns:
    def test_bots_pick_until_human_on_clock(self, seed, league, force_order):
        seed(bots=(1, 2, 3))
        draft = _started(league, force_order, ["m-a", "m-b", "m-c", "m-d"])
        assert league.draft_state(LEAGUE_ID)["on_the_clock"] == "m-a"

        league.make_pick(draft.draft_id, "u-a", "rb01")

        state = league.draft_state(LEAGUE_ID, "u-a")
        assert state["draft"]["current_pick"] == 8
        assert state["on_the_clock"] == "m-a"
        assert not state["on_the_clock_is_bot"]
        assert [p["member_id"] for p in state["picks"]] == SNAKE_4x3[:7]

        league.make_pick(draft.draft_id, "u-a", _best_available(league, draft.draft_id))
        league.make_pick(draft.draft_id, "u-a", _best_available(league, draft.draft_id))
        assert league.draft_state(LEAGUE_ID)["draft"]["status"] == "completed"

    def test_start_runs_bots_first(self, seed, league, force_order):
        seed(bots=(1, 2, 3))
        _started(league, force_order, ["m-b", "m-c", "m-d", "m-a"])
        state = league.draft_state(LEAGUE_ID)
        assert len(state["picks"]) == 3
        assert state["on_the_clock"] == "m-a"

    def test_bot_early_rounds_take_backs_or_receivers(self, seed, league, force_order):
        seed(bots=(1, 2, 3))
        draft = _started(league, force_order, ["m-b", "m-c", "m-d", "m-a"])
        state = league.draft_state(LEAGUE_ID)
        positions = {p["player_id"][:2] for p in state["picks"]}
        assert positions <= {"rb", "wr"}
        assert draft.draft_id == state["draft"]["draft_id"]

    def test_exhausted_pool_surfaces_error(self, seed, league, force_order, catalog):
        seed(teams=2, bots=(1,), players=catalog[:5])
        draft = _started(league, force_order, ["m-a", "m-b"])

        league.make_pick(draft.draft_id, "u-a", "qb01")
        league.make_pick(draft.draft_id, "u-a", _best_available(league, draft.draft_id))
        with pytest.raises(NoAvailablePlayers):
            league.make_pick(draft.draft_id, "u-a", _best_available(league, draft.draft_id))

        state = league.draft_state(LEAGUE_ID)
        assert len(state["picks"]) == 5
        assert state["draft"]["status"] == "in_progress"
        assert state["draft"]["current_pick"] == 6


class TestAvailablePlayers:
    def test_ordering_and_filters(self, seed, league, catalog):
        seed(players=catalog + [Player(player_id="zz", full_name="Aaron NoAdp", position="WR")])
        draft = league.setup_draft(LEAGUE_ID, "u-a", rounds=3)

        receivers = league.drafts.available_players(draft.draft_id, position="wr", limit=None)
        assert receivers[0].player_id == "wr01"
        assert receivers[-1].player_id == "zz"

        found = league.drafts.available_players(draft.draft_id, search="player 01", limit=None)
        assert {p.player_id for p in found} == {"qb01", "rb01", "wr01", "te01", "k01", "def01"}
        assert [p.adp for p in found] == sorted(p.adp for p in found)

    def test_draft_state_for_viewer(self, seed, league, force_order):
        seed(bots=(3,))
        _started(league, force_order, ["m-d", "m-a", "m-b", "m-c"])

        state = league.draft_state(LEAGUE_ID, "u-b")
        assert state["my_member_id"] == "m-b"
        assert not state["is_commissioner"]
        assert state["number_of_teams"] == 4
        assert state["seconds_per_pick"] == 120
        assert state["on_the_clock"] == "m-a"
        assert league.draft_state(LEAGUE_ID, "u-a")["is_commissioner"]
