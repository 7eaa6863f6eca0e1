"""Persistence helpers and per-aggregate data access."""

from .sqlite_store import bulk_insert, create_engine, create_tables, new_id, utc_now

__all__ = ["bulk_insert", "create_engine", "create_tables", "new_id", "utc_now"]
