"""
auth/sessions.py -- Server-side session storage.

The session mechanism only needs four capabilities from its backend:

    create(user_id)      -> Session   allocate a fresh id bound to a user
    read(session_id)     -> Session | None   live record, or None if unknown/expired
    destroy(session_id)  -> None      remove a record; unknown ids are a no-op
    expire()             -> int       bulk-delete expired records

SessionStore is that contract as a typing.Protocol. Two backends ship:

  SqlSessionStore    -- SQLAlchemy Core table "sessions"; survives restarts and
                        is shared between worker processes.
  MemorySessionStore -- process-local dict; for single-process deployments
                        and tests.

Expiry is absolute: expires_at = created_at + ttl, fixed at creation. read()
never returns an expired record and deletes it when it sees one (same lazy
policy as a TTL cache); expire() is the periodic sweep for records nobody
reads again.

Backend failures are raised as SessionStoreError so callers never depend on
the backend's own exception types.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

from sqlalchemy import Column, Float, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.models import Session
from auth.tokens import new_session_id
from core.db import make_engine

logger = logging.getLogger("accountdesk.sessions")

_DEFAULT_TTL = 60 * 60 * 24  # 24 hours in seconds


class SessionStoreError(Exception):
    """The session backend failed (unreachable, write rejected, ...)."""


class SessionStore(Protocol):
    def create(self, user_id: int) -> Session: ...

    def read(self, session_id: str) -> Session | None: ...

    def destroy(self, session_id: str) -> None: ...

    def expire(self) -> int: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# SQLAlchemy backend
# ---------------------------------------------------------------------------

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("session_id", String(64), primary_key=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("created_at", Float, nullable=False),
    Column("expires_at", Float, nullable=False, index=True),
)


class SqlSessionStore:
    """Session records in a SQL table, keyed by session id."""

    def __init__(
        self,
        db_url: str,
        ttl: int = _DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create(self, user_id: int) -> Session:
        now = self._clock()
        session = Session(
            session_id=new_session_id(),
            user_id=user_id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _sessions.insert().values(
                        session_id=session.session_id,
                        user_id=session.user_id,
                        created_at=session.created_at,
                        expires_at=session.expires_at,
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not create session") from exc
        return session

    def read(self, session_id: str) -> Session | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_sessions.select().where(_sessions.c.session_id == session_id)).fetchone()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not read session") from exc
        if row is None:
            return None
        session = Session(
            session_id=row.session_id,
            user_id=row.user_id,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )
        if session.is_expired(self._clock()):
            self.destroy(session_id)
            return None
        return session

    def destroy(self, session_id: str) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(_sessions.delete().where(_sessions.c.session_id == session_id))
                conn.commit()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not destroy session") from exc

    def expire(self) -> int:
        """Delete all expired records. Returns number of rows removed."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= self._clock()))
                conn.commit()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not purge expired sessions") from exc
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemorySessionStore:
    """Session records in a dict. Lost on restart; not shared across processes.

    Route handlers run in the thread pool, so every access holds the lock.
    """

    def __init__(self, ttl: int = _DEFAULT_TTL, clock: Callable[[], float] = time.time) -> None:
        self.ttl = ttl
        self._clock = clock
        self._records: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int) -> Session:
        now = self._clock()
        session = Session(
            session_id=new_session_id(),
            user_id=user_id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        with self._lock:
            self._records[session.session_id] = session
        return session

    def read(self, session_id: str) -> Session | None:
        with self._lock:
            session = self._records.get(session_id)
            if session is not None and session.is_expired(self._clock()):
                del self._records[session_id]
                return None
        return session

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._records.pop(session_id, None)

    def expire(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [sid for sid, s in self._records.items() if s.is_expired(now)]
            for sid in stale:
                del self._records[sid]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def close(self) -> None:
        with self._lock:
            self._records.clear()


def build_session_store(backend: str, db_url: str, ttl: int) -> SessionStore:
    """Return the configured backend ("database" or "memory")."""
    if backend == "memory":
        logger.info("Using in-memory session store (sessions are lost on restart)")
        return MemorySessionStore(ttl=ttl)
    return SqlSessionStore(db_url, ttl=ttl)
