"""Public package exports for the league transaction engine."""

from .config import EngineConfig, configure_logging, load_config
from .draft import DraftEngine
from .errors import LeagueError
from .fantasy_league import FantasyLeague
from .rosters import RosterManager
from .schema import models as schema_models
from .settings import LeagueSettings
from .slots import SlotLayout, can_fill_slot, generate_slot_layout
from .store.sqlite_store import bulk_insert, create_engine, create_tables
from .trades import TradeEngine

__all__ = [
    "DraftEngine",
    "EngineConfig",
    "FantasyLeague",
    "LeagueError",
    "LeagueSettings",
    "RosterManager",
    "SlotLayout",
    "TradeEngine",
    "bulk_insert",
    "can_fill_slot",
    "configure_logging",
    "create_engine",
    "create_tables",
    "generate_slot_layout",
    "load_config",
    "schema_models",
]
