from datetime import timedelta

import config as cfg
from session import SessionStore


def test_create_get_delete():
    store = SessionStore()
    session = store.create()

    assert store.get(session.id) is session
    assert len(store) == 1
    store.delete(session.id)
    assert store.get(session.id) is None
    store.delete(session.id)


def test_each_session_has_its_own_scene():
    store = SessionStore()
    a, b = store.create(), store.create()
    a.scene.apply_commands([{"id": "r1", "type": "rectangle", "x": 0, "y": 0}])

    assert len(a.scene) == 1
    assert len(b.scene) == 0


def test_expired_sessions_are_hidden_and_cleaned(monkeypatch):
    monkeypatch.setattr(cfg, "SESSION_TTL_SECONDS", 60)
    store = SessionStore()
    old, fresh = store.create(), store.create()
    old.last_activity -= timedelta(seconds=120)

    assert store.get(old.id) is None
    assert store.get(fresh.id) is fresh
    assert store.cleanup_expired() == 1
    assert len(store) == 1


def test_update_refreshes_activity():
    store = SessionStore()
    session = store.create()
    session.last_activity -= timedelta(seconds=30)
    before = session.last_activity

    store.update(session)
    assert session.last_activity > before


def test_record_turn_and_summary():
    store = SessionStore()
    session = store.create()
    session.record_turn("draw a box", '{"id":"r1"}')

    summary = session.summary()
    assert summary["id"] == session.id
    assert summary["message_count"] == 2
    assert summary["element_count"] == 0
    assert session.history[1] == {"role": "assistant", "content": '{"id":"r1"}'}
