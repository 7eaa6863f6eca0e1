"""Configuration helpers for the league transaction engine."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv

DEFAULT_DB_URL = "sqlite:///.cache/league/league.sqlite"
DEFAULT_ROUNDS = 15
MAX_ROUNDS = 20


@dataclass(frozen=True)
class EngineConfig:
    db_url: str = DEFAULT_DB_URL
    random_seed: int | None = None
    log_level: str = "INFO"
    default_rounds: int = DEFAULT_ROUNDS


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc


def load_config() -> EngineConfig:
    load_dotenv()
    db_url = os.getenv("LEAGUE_DB_URL") or DEFAULT_DB_URL
    seed = _optional_int("LEAGUE_RANDOM_SEED")
    log_level = (os.getenv("LEAGUE_LOG_LEVEL") or "INFO").upper()

    rounds = _optional_int("LEAGUE_DEFAULT_ROUNDS")
    if rounds is None:
        rounds = DEFAULT_ROUNDS
    if not 1 <= rounds <= MAX_ROUNDS:
        raise ValueError(f"LEAGUE_DEFAULT_ROUNDS must be between 1 and {MAX_ROUNDS}.")

    return EngineConfig(
        db_url=db_url,
        random_seed=seed,
        log_level=log_level,
        default_rounds=rounds,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
