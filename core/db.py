"""
core/db.py -- Engine construction shared by every SQLAlchemy-backed store.

Each store (auth.store.UserStore, auth.sessions.SqlSessionStore,
contact.store.ContactStore) builds its own Engine from the same DATABASE_URL
via make_engine(), so the SQLite connection settings live in one place.
Swapping SQLite for PostgreSQL is a connection string change.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/ or contact/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an Engine, applying the SQLite-specific connection settings.

    check_same_thread=False: sync route handlers run in Starlette's thread
    pool, so a pooled connection may be used from a different thread than the
    one that opened it.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
