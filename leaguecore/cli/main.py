"""CLI for the league transaction engine.

Small operator commands over one league database: create the schema, load a
league fixture, inspect draft state and rosters, and run a mock draft.
"""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json

from dotenv import load_dotenv

from leaguecore.league_engine import FantasyLeague, configure_logging, load_config
from leaguecore.league_engine.errors import LeagueError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="leaguecore-cli")
    parser.add_argument("--db-url", help="Database URL (overrides LEAGUE_DB_URL).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create the league tables.")

    load = subparsers.add_parser("load", help="Load a league fixture JSON file.")
    load.add_argument("path", help="Path to fixture JSON (league, members, players).")

    state = subparsers.add_parser("draft-state", help="Show a league's draft state.")
    state.add_argument("league_id")
    state.add_argument("--user", help="Acting user id.")

    mock = subparsers.add_parser(
        "mock-draft", help="Set up, start and auto-complete a league's draft."
    )
    mock.add_argument("league_id")
    mock.add_argument("--user", required=True, help="Commissioner user id.")
    mock.add_argument("--rounds", type=int, help="Number of rounds.")

    roster = subparsers.add_parser("roster", help="Show a member's roster.")
    roster.add_argument("member_id")

    agents = subparsers.add_parser("free-agents", help="List free agents in a league.")
    agents.add_argument("league_id")
    agents.add_argument("--position")
    agents.add_argument("--search")
    agents.add_argument("--limit", type=int, default=25)

    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _draft_board(state: dict) -> list[dict]:
    return [
        {
            "pick": pick["pick_number"],
            "round": pick["round"],
            "member_id": pick["member_id"],
            "player_id": pick["player_id"],
        }
        for pick in state.get("picks", [])
    ]


def _run(league: FantasyLeague, args: argparse.Namespace) -> int:
    if args.command == "init":
        league.create_tables()
        print("Tables created.")
        return 0
    if args.command == "load":
        with open(args.path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        league.create_tables()
        _print_json(league.load_fixture(payload))
        return 0
    if args.command == "draft-state":
        _print_json(league.draft_state(args.league_id, args.user))
        return 0
    if args.command == "mock-draft":
        state = league.run_mock_draft(args.league_id, args.user, args.rounds)
        _print_json({"draft": state["draft"], "board": _draft_board(state)})
        return 0
    if args.command == "roster":
        _print_json(league.roster(args.member_id))
        return 0
    if args.command == "free-agents":
        players = league.free_agents(
            args.league_id, position=args.position, search=args.search, limit=args.limit
        )
        _print_json([asdict(player) for player in players])
        return 0
    return 2


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = load_config()
    configure_logging(config.log_level)
    league = FantasyLeague(db_url=args.db_url, config=config)
    try:
        return _run(league, args)
    except LeagueError as exc:
        _print_json({"error": exc.to_dict()})
        return 1
    finally:
        league.close()


if __name__ == "__main__":
    raise SystemExit(main())
