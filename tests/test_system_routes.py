import httpx
import pytest

from taskflow.models.database import Database
from taskflow.web.app import create_app

from conftest import FakeVerifier, make_settings

CRON_HEADERS = {"Authorization": "Bearer cron-secret"}


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["database"] == {"connected": True, "status": "healthy"}
    assert body["uptime"] >= 0


@pytest.mark.asyncio
async def test_health_reports_database_down(client, database, monkeypatch):
    async def down():
        return False

    monkeypatch.setattr(database, "ping", down)

    resp = await client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["database"]["connected"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "cron-secret"}])
async def test_cron_rejects_bad_secret(app, headers):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.post("/api/cron/daily", headers=headers)

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_cron_disabled_without_secret(app):
    app.state.settings = app.state.settings.model_copy(update={"cron_secret": ""})
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.post("/api/cron/weekly", headers={"Authorization": "Bearer "})

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_cron_daily_resets_all_owners(app, client, other_client):
    mine = (await client.post("/api/tasks", json={"title": "a", "refreshType": "daily"})).json()
    theirs = (
        await other_client.post("/api/tasks", json={"title": "b", "refreshType": "daily"})
    ).json()
    await client.patch(f"/api/tasks/{mine['id']}", json={"completed": True})
    await other_client.patch(f"/api/tasks/{theirs['id']}", json={"completed": True})

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.post("/api/cron/daily", headers=CRON_HEADERS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["owners"] == 2
    assert body["failed"] == 0
    assert "timestamp" in body

    assert (await client.get("/api/tasks")).json()[0]["completed"] is False
    assert (await other_client.get("/api/tasks")).json()[0]["completed"] is False


@pytest.mark.asyncio
async def test_cron_weekly(app, client):
    task = (await client.post("/api/tasks", json={"title": "w", "refreshType": "weekly"})).json()
    await client.patch(f"/api/tasks/{task['id']}", json={"completed": True})

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        resp = await c.post("/api/cron/weekly", headers=CRON_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["owners"] == 1
    [listed] = (await client.get("/api/tasks")).json()
    assert listed["completed"] is False


@pytest.mark.asyncio
async def test_startup_creates_missing_tables():
    settings = make_settings()
    database = Database.from_settings(settings)
    app = create_app(settings, database=database, verifier=FakeVerifier())

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(
            transport=transport,
            base_url="http://test",
            headers={"Authorization": "Bearer token-alice"},
        ) as c:
            resp = await c.post("/api/tasks", json={"title": "first"})

    assert resp.status_code == 201
