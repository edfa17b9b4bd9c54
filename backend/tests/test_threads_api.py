import pytest
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi.testclient import TestClient

from deenly.errors import StoreError
from deenly.services.session import ChatSession
from deenly.services.threads import Message

BASE = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def _auth_headers():
    return {"Authorization": "Bearer test-token"}


def _log():
    rows = [
        ("m1", 0, "user", "¿Cómo puedo mejorar mi concentración en el Salah?"),
        ("m2", 1, "assistant", "Bismillah..."),
        ("m3", 300, "user", "Explícame la paciencia (Sabr)"),
        ("m4", 301, "assistant", "As-salamu alaykum..."),
        ("m5", 302, "user", "¿Y en la enfermedad?"),
    ]
    return [
        Message(id=i, role=r, content=c, timestamp=BASE + timedelta(minutes=t))
        for i, t, r, c in rows
    ]


def _store(messages):
    store = MagicMock()
    store.list_messages = AsyncMock(return_value=messages)
    store.delete_messages = AsyncMock()
    store.set_starred = AsyncMock()
    return store


@pytest.fixture
def client():
    with patch("deenly.dependencies.jwt") as mock_jwt:
        mock_jwt.decode.return_value = {"sub": "user-1", "email": "test@test.com"}
        from deenly.main import app
        yield TestClient(app)


@pytest.fixture
def store():
    return _store(_log())


@pytest.fixture
def session(store):
    user = {"id": "user-1", "email": "test@test.com", "token": "test-token", "is_guest": False}
    session = ChatSession(user, store, MagicMock())
    with patch("deenly.routers.threads.get_session", return_value=session):
        yield session


def test_list_threads_newest_first(client, session):
    res = client.get("/api/threads", headers=_auth_headers())
    assert res.status_code == 200
    data = res.json()
    assert [t["id"] for t in data] == ["m3", "m1"]
    assert data[0]["title"] == "Explícame la paciencia (Sabr)"
    assert data[0]["message_count"] == 3
    assert data[1]["title"] == _log()[0].content[:40] + "..."
    assert data[1]["starred"] is False


def test_list_threads_starred_first(client, store, session):
    log = _log()
    log[0] = replace(log[0], starred=True)
    store.list_messages.return_value = log
    res = client.get("/api/threads", headers=_auth_headers())
    assert [t["id"] for t in res.json()] == ["m1", "m3"]


def test_list_threads_search(client, session):
    res = client.get("/api/threads", params={"q": "sabr"}, headers=_auth_headers())
    assert [t["id"] for t in res.json()] == ["m3"]


def test_thread_messages(client, session):
    res = client.get("/api/threads/m3/messages", headers=_auth_headers())
    assert res.status_code == 200
    assert [m["id"] for m in res.json()] == ["m3", "m4", "m5"]
    assert session.state.active_thread_id == "m3"


def test_unknown_thread_messages_fall_back_to_whole_log(client, session):
    res = client.get("/api/threads/gone/messages", headers=_auth_headers())
    assert res.status_code == 200
    assert len(res.json()) == 5


def test_toggle_star(client, store, session):
    res = client.post("/api/threads/m3/star", headers=_auth_headers())
    assert res.status_code == 200
    assert res.json()["starred"] is True
    store.set_starred.assert_awaited_once_with(("m3", "m4", "m5"), True)


def test_set_star_explicitly(client, store, session):
    res = client.put("/api/threads/m1/star", json={"starred": False}, headers=_auth_headers())
    assert res.status_code == 200
    store.set_starred.assert_awaited_once_with(("m1", "m2"), False)


def test_delete_thread(client, store, session):
    res = client.delete("/api/threads/m3", headers=_auth_headers())
    assert res.status_code == 204
    store.delete_messages.assert_awaited_once_with(("m3", "m4", "m5"))
    assert [m.id for m in session.state.messages] == ["m1", "m2"]


def test_delete_unknown_thread_is_404(client, store, session):
    res = client.delete("/api/threads/nope", headers=_auth_headers())
    assert res.status_code == 404
    store.delete_messages.assert_not_awaited()


def test_star_on_message_inside_thread_is_404_and_store_untouched(client, store, session):
    res = client.post("/api/threads/m4/star", headers=_auth_headers())
    assert res.status_code == 404
    store.set_starred.assert_not_awaited()
    assert not any(m.starred for m in session.state.messages)


def test_set_star_on_message_inside_thread_is_404(client, store, session):
    res = client.put("/api/threads/m5/star", json={"starred": True}, headers=_auth_headers())
    assert res.status_code == 404
    store.set_starred.assert_not_awaited()


def test_delete_on_message_inside_thread_is_404_and_keeps_thread(client, store, session):
    res = client.delete("/api/threads/m4", headers=_auth_headers())
    assert res.status_code == 404
    store.delete_messages.assert_not_awaited()
    assert [m.id for m in session.state.messages] == ["m1", "m2", "m3", "m4", "m5"]


def test_store_failure_is_502_and_state_unchanged(client, store, session):
    store.delete_messages.side_effect = StoreError("supabase down")
    res = client.delete("/api/threads/m3", headers=_auth_headers())
    assert res.status_code == 502
    assert len(session.state.messages) == 5


def test_active_thread_closed_for_old_log(client, session):
    res = client.get("/api/threads/active", headers=_auth_headers())
    assert res.status_code == 200
    assert res.json() == []


def test_requires_auth(client):
    res = client.get("/api/threads")
    assert res.status_code == 401
