"""
Tests for session persistence.
"""
from datetime import datetime, timedelta, timezone

import pytest

from studyquiz.db.session_store import (
    InMemorySessionStore,
    JsonSessionStore,
    SessionStoreError,
)
from studyquiz.services.quiz_engine import QuizEngine


@pytest.fixture
def session(catalog):
    engine = QuizEngine()
    session = engine.start(catalog.items, "shuffled", seed=7)
    engine.answer(session, session.items[0].id, "B")
    return session


def test_json_store_round_trip(sessions_dir, session):
    store = JsonSessionStore(sessions_dir)
    store.save(session)

    loaded = store.get(session.id)

    assert loaded == session
    assert (sessions_dir / f"{session.id}.json").is_file()
    assert store.list_ids() == [session.id]


def test_json_store_missing_session(sessions_dir):
    store = JsonSessionStore(sessions_dir)

    assert store.get("session_000000000000") is None
    assert store.list_ids() == []
    assert store.delete("session_000000000000") is False


def test_json_store_rejects_path_like_ids(sessions_dir):
    store = JsonSessionStore(sessions_dir)

    with pytest.raises(SessionStoreError):
        store.get("../etc/passwd")


def test_json_store_corrupt_file(sessions_dir):
    sessions_dir.mkdir()
    (sessions_dir / "session_broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(SessionStoreError):
        JsonSessionStore(sessions_dir).get("session_broken")


def test_json_store_delete(sessions_dir, session):
    store = JsonSessionStore(sessions_dir)
    store.save(session)

    assert store.delete(session.id) is True
    assert store.get(session.id) is None


def test_in_memory_store(session):
    store = InMemorySessionStore()
    store.save(session)

    assert store.get(session.id) is session
    assert store.list_ids() == [session.id]
    assert store.delete(session.id) is True
    assert store.get(session.id) is None


def test_in_memory_store_drops_expired_completed_sessions(catalog):
    engine = QuizEngine()
    store = InMemorySessionStore(completed_ttl=3600)

    active = engine.start(catalog.items)
    finished_long_ago = engine.finish(engine.start(catalog.items))
    finished_long_ago.finished_at = datetime.now(timezone.utc) - timedelta(hours=2)
    finished_recently = engine.finish(engine.start(catalog.items))
    for session in (active, finished_long_ago, finished_recently):
        store.save(session)

    assert store.get(finished_long_ago.id) is None
    assert store.get(active.id) is active
    assert store.get(finished_recently.id) is finished_recently


def test_in_memory_store_without_ttl_keeps_sessions(catalog):
    engine = QuizEngine()
    store = InMemorySessionStore()

    session = engine.finish(engine.start(catalog.items))
    session.finished_at = datetime.now(timezone.utc) - timedelta(days=30)
    store.save(session)

    assert store.get(session.id) is session
