"""SQLite store helpers for the league engine."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
import os
import threading
from typing import Any, Iterable, Mapping
import uuid

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from ..schema.tables import TABLES, metadata


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


class SerializedStaticPool(StaticPool):
    """StaticPool that lends its one connection to a single checkout at a time.

    A checkout blocks until the previous holder closes its connection, so
    transactions from different threads never interleave on the shared
    in-memory database. Nested checkouts on one thread are not supported.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._turn = threading.RLock()

    def _do_get(self):
        self._turn.acquire()
        try:
            return super()._do_get()
        except BaseException:
            self._turn.release()
            raise

    def _do_return_conn(self, record) -> None:
        try:
            super()._do_return_conn(record)
        finally:
            self._turn.release()


def create_engine(db_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one serialized connection."""
    if db_url in {"sqlite://", "sqlite:///:memory:"}:
        engine = sa_create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=SerializedStaticPool,
        )
    else:
        if db_url.startswith("sqlite:///"):
            path = db_url[len("sqlite:///"):]
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        engine = sa_create_engine(db_url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_conn, _record) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA temp_store = MEMORY;")
        cursor.close()

    return engine


def create_tables(engine: Engine) -> None:
    metadata.create_all(engine)


def _normalize_row(row: Any) -> Mapping[str, Any]:
    if hasattr(row, "to_row"):
        return row.to_row()
    if is_dataclass(row):
        return asdict(row)
    if isinstance(row, Mapping):
        return row
    raise TypeError("Row must be dataclass, Mapping, or expose to_row().")


def bulk_insert(conn, table: str, rows: Iterable[Any]) -> int:
    normalized = [dict(_normalize_row(row)) for row in rows]
    if not normalized:
        return 0
    conn.execute(TABLES[table].insert(), normalized)
    return len(normalized)
