"""Shared utility functions for data access modules."""

from __future__ import annotations

from typing import Any

from sqlalchemy.sql import Executable


def fetch_all(conn, stmt: Executable) -> list[dict[str, Any]]:
    """Execute a statement and return all rows as list of dicts."""
    return [dict(row) for row in conn.execute(stmt).mappings().all()]


def fetch_one(conn, stmt: Executable) -> dict[str, Any] | None:
    """Execute a statement and return first row as dict, or None."""
    row = conn.execute(stmt).mappings().first()
    if row is None:
        return None
    return dict(row)
