import random

import pytest

from leaguecore.league_engine import FantasyLeague
from leaguecore.league_engine.config import EngineConfig
from leaguecore.league_engine.rosters import place
from leaguecore.league_engine.schema.models import Member, Player
from leaguecore.league_engine.store import drafts as draft_store
from leaguecore.league_engine.store.sqlite_store import create_engine, create_tables

LEAGUE_ID = "L1"

CATALOG_SHAPE = (("QB", 8), ("RB", 16), ("WR", 16), ("TE", 8), ("K", 6), ("DEF", 6))


def make_catalog() -> list[Player]:
    players = []
    adp = 1
    for position, count in CATALOG_SHAPE:
        for index in range(1, count + 1):
            players.append(
                Player(
                    player_id=f"{position.lower()}{index:02d}",
                    full_name=f"{position} Player {index:02d}",
                    position=position,
                    nfl_team="FA",
                    adp=float(adp),
                )
            )
            adp += 1
    return players


class FakeTimer:
    """Stand-in for threading.Timer that only fires when a test says so."""

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.started = False
        self.canceled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.canceled = True

    def fire(self):
        self.function(*self.args)


@pytest.fixture
def catalog() -> list[Player]:
    return make_catalog()


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def timers() -> list:
    return []


@pytest.fixture
def league(engine, rng, timers):
    def _timer_factory(interval, function, args=()):
        timer = FakeTimer(interval, function, args)
        timers.append(timer)
        return timer

    app = FantasyLeague(
        engine=engine,
        config=EngineConfig(db_url="sqlite://", random_seed=1234, default_rounds=3),
        rng=rng,
        timer_factory=_timer_factory,
    )
    yield app
    app.clock.cancel_all()


@pytest.fixture
def seed(league):
    """Create league L1 with `teams` members; member 0 is commissioner.

    Members are m-a, m-b, ...; humans have user ids u-a, u-b, ...
    """

    def _seed(teams=4, bots=(), settings=None, players=None, current_week=0):
        league.add_league(LEAGUE_ID, "Test League", teams, settings, current_week=current_week)
        members = []
        for index in range(teams):
            letter = chr(ord("a") + index)
            is_bot = index in bots
            members.append(
                Member(
                    member_id=f"m-{letter}",
                    league_id=LEAGUE_ID,
                    user_id=None if is_bot else f"u-{letter}",
                    team_name=f"Team {letter.upper()}",
                    is_commissioner=index == 0,
                    is_bot=is_bot,
                )
            )
        league.add_members(members)
        league.add_players(make_catalog() if players is None else players)
        return members

    return _seed


@pytest.fixture
def force_order(engine):
    def _force(draft_id, member_ids):
        with engine.begin() as conn:
            draft_store.replace_order(conn, draft_id, list(member_ids))

    return _force


@pytest.fixture
def add_entry(engine):
    def _add(member_id, player_id, slot, acquired_via="draft"):
        with engine.begin() as conn:
            return place(conn, LEAGUE_ID, member_id, player_id, slot, acquired_via)

    return _add
