import asyncio

import pytest
from fastapi.testclient import TestClient

from sessionstore.deps import get_redis
from sessionstore.routes import create_app
from sessionstore.services import SessionServices
from sessionstore.settings import settings
from sessionstore.store import SessionStore
from tests.utils import InMemoryRedis, UnavailableRedis, make_message

USER = "5511999990000@s.whatsapp.net"
AUTH = {"Authorization": "Bearer admin-secret"}


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def client(monkeypatch, fake_redis):
    monkeypatch.setattr(settings, "admin_api_token", "admin-secret", raising=False)
    app = create_app()

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_redis] = override_get_redis
    with TestClient(app) as test_client:
        yield test_client


def _services(redis) -> SessionServices:
    return SessionServices.from_store(SessionStore(redis))


def _seed_context(redis, user_id: str, count: int) -> None:
    async def _run():
        contexts = _services(redis).contexts
        for i in range(count):
            await contexts.append_message(user_id, make_message(i, sender=user_id))

    asyncio.run(_run())


def test_admin_routes_require_token(client):
    assert client.get(f"/admin/users/{USER}/memory").status_code == 401
    wrong = client.get(f"/admin/users/{USER}/memory", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401


def test_get_memory_returns_context_or_404(client, fake_redis):
    missing = client.get(f"/admin/users/{USER}/memory", headers=AUTH)
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "not_found"

    _seed_context(fake_redis, USER, 3)
    resp = client.get(f"/admin/users/{USER}/memory", headers={"X-API-Key": "admin-secret"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["user_id"] == USER
    assert [m["id"] for m in data["messages"]] == ["msg-0", "msg-1", "msg-2"]
    assert data["metadata"]["total_messages"] == 3


def test_delete_memory_clears_context(client, fake_redis):
    _seed_context(fake_redis, USER, 2)

    resp = client.delete(f"/admin/users/{USER}/memory", headers=AUTH)

    assert resp.status_code == 204
    assert client.get(f"/admin/users/{USER}/memory", headers=AUTH).status_code == 404


def test_pause_resume_and_status(client):
    paused = client.post(f"/admin/users/{USER}/pause", json={"duration_ms": 120_000}, headers=AUTH)
    assert paused.status_code == 200
    body = paused.json()
    assert body["user_id"] == USER
    assert body["duration_ms"] == 120_000
    assert body["paused_until"] == body["expires_at"]

    status_resp = client.get(f"/admin/users/{USER}/status", headers=AUTH).json()
    assert status_resp["is_paused"] is True
    assert status_resp["pause"]["expires_at"] == body["expires_at"]
    assert status_resp["rate_limit"]["requests"] == 0

    assert client.post(f"/admin/users/{USER}/resume", headers=AUTH).status_code == 204
    status_resp = client.get(f"/admin/users/{USER}/status", headers=AUTH).json()
    assert status_resp["is_paused"] is False
    assert status_resp["pause"] is None


def test_pause_without_body_uses_default_duration(client):
    resp = client.post(f"/admin/users/{USER}/pause", headers=AUTH)

    assert resp.status_code == 200
    assert resp.json()["duration_ms"] == 3_600_000


def test_pause_rejects_non_positive_duration(client):
    resp = client.post(f"/admin/users/{USER}/pause", json={"duration_ms": 0}, headers=AUTH)

    assert resp.status_code == 422


def test_invalid_user_id_is_a_bad_request(client):
    resp = client.post("/admin/users/has space/pause", headers=AUTH)

    assert resp.status_code == 400
    assert resp.json()["error"] == "bad_request"


def test_global_pause_applies_to_status(client):
    assert client.post("/admin/global/pause", json={"duration_ms": 60_000}, headers=AUTH).status_code == 200

    status_resp = client.get(f"/admin/users/{USER}/status", headers=AUTH).json()
    assert status_resp["is_paused"] is True
    assert status_resp["pause"] is None

    assert client.post("/admin/global/resume", headers=AUTH).status_code == 204
    assert client.get(f"/admin/users/{USER}/status", headers=AUTH).json()["is_paused"] is False


def test_bulk_pause_counts_failures(client):
    resp = client.post(
        "/admin/bulk",
        json={"action": "pause_users", "user_ids": ["a", "b", "has space"], "duration_ms": 60_000},
        headers=AUTH,
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "action": "pause_users",
        "total": 3,
        "success_count": 2,
        "message": "Paused 2/3 users",
    }


def test_bulk_clear_memory_without_ids_clears_everything(client, fake_redis):
    _seed_context(fake_redis, "a", 1)
    _seed_context(fake_redis, "b", 1)

    resp = client.post("/admin/bulk", json={"action": "clear_memory"}, headers=AUTH)

    assert resp.status_code == 200
    assert resp.json()["success_count"] == 2
    assert client.get("/admin/users/a/memory", headers=AUTH).status_code == 404


def test_bulk_resume_requires_ids(client):
    resp = client.post("/admin/bulk", json={"action": "resume_users"}, headers=AUTH)

    assert resp.status_code == 400


def test_list_conversations(client, fake_redis):
    async def _run():
        conversations = _services(fake_redis).conversations
        await conversations.record(make_message(1, sender=USER, body="oi"))

    asyncio.run(_run())

    resp = client.get("/admin/conversations", params={"limit": 10}, headers=AUTH)

    assert resp.status_code == 200
    [summary] = resp.json()
    assert summary["user_id"] == USER
    assert summary["last_message"] == "oi"
    assert client.get("/admin/conversations", params={"limit": 0}, headers=AUTH).status_code == 422


def test_health_reports_store_state(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_unreachable_store_maps_to_503(client):
    async def override_get_redis():
        return UnavailableRedis()

    client.app.dependency_overrides[get_redis] = override_get_redis

    health = client.get("/health")
    memory = client.get(f"/admin/users/{USER}/memory", headers=AUTH)

    assert health.status_code == 503
    assert health.json()["status"] == "unhealthy"
    assert memory.status_code == 503
    assert memory.json()["error"] == "service_unavailable"
    assert memory.json()["details"] == {"operation": "get"}
