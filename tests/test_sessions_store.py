"""
tests/test_sessions_store.py -- Both SessionStore backends against the same contract.

Time is injected through the clock argument so expiry is tested without sleeping.
"""

from __future__ import annotations

import pytest

from auth.sessions import MemorySessionStore, SessionStoreError, SqlSessionStore, build_session_store


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=["sql", "memory"])
def store(request, db_url, clock):
    if request.param == "sql":
        s = SqlSessionStore(db_url, ttl=3600, clock=clock)
    else:
        s = MemorySessionStore(ttl=3600, clock=clock)
    yield s
    s.close()


def test_create_then_read(store, clock):
    session = store.create(user_id=7)
    assert session.user_id == 7
    assert session.created_at == clock.now
    assert session.expires_at == clock.now + 3600
    assert store.read(session.session_id) == session


def test_ids_are_unique(store):
    ids = {store.create(user_id=1).session_id for _ in range(20)}
    assert len(ids) == 20


def test_read_unknown_returns_none(store):
    assert store.read("does-not-exist") is None


def test_destroy_is_idempotent(store):
    session = store.create(user_id=1)
    store.destroy(session.session_id)
    store.destroy(session.session_id)
    store.destroy("never-existed")
    assert store.read(session.session_id) is None


def test_expiry_is_absolute(store, clock):
    session = store.create(user_id=1)

    clock.now += 3599
    assert store.read(session.session_id) is not None

    # Reading does not extend the lifetime.
    clock.now += 1
    assert store.read(session.session_id) is None


def test_expire_removes_only_expired(store, clock):
    old = store.create(user_id=1)
    clock.now += 1800
    fresh = store.create(user_id=2)
    clock.now += 1800

    assert store.expire() == 1
    assert store.read(old.session_id) is None
    assert store.read(fresh.session_id) is not None
    assert store.expire() == 0


def test_memory_store_drops_expired_record_on_read(clock):
    store = MemorySessionStore(ttl=10, clock=clock)
    session = store.create(user_id=1)
    assert len(store) == 1
    clock.now += 10
    assert store.read(session.session_id) is None
    assert len(store) == 0


def test_sql_store_wraps_backend_errors(db_url):
    store = SqlSessionStore(db_url)
    with store.engine.connect() as conn:
        conn.exec_driver_sql("DROP TABLE sessions")
        conn.commit()

    with pytest.raises(SessionStoreError):
        store.create(user_id=1)
    with pytest.raises(SessionStoreError):
        store.read("x")
    with pytest.raises(SessionStoreError):
        store.expire()
    store.close()


def test_build_session_store_selects_backend(db_url):
    assert isinstance(build_session_store("memory", db_url, ttl=60), MemorySessionStore)
    sql = build_session_store("database", db_url, ttl=60)
    assert isinstance(sql, SqlSessionStore)
    assert sql.ttl == 60
    sql.close()
