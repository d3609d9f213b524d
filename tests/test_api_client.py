"""Tests for ApiClient against an httpx.MockTransport server."""

import json

import httpx
import pytest
import pytest_asyncio

from taskflow.client.api import ApiClient
from taskflow.client.network import ApiError


class FakeServer:
    """Records requests; can be switched to drop connections or return errors."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.down = False
        self.tasks = [{"id": "1", "title": "Buy milk"}]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        self.requests.append(request)
        if request.url.path == "/api/tasks" and request.method == "GET":
            return httpx.Response(200, json=self.tasks)
        if request.url.path == "/api/tasks" and request.method == "POST":
            return httpx.Response(201, json={"id": "2"})
        if request.url.path.endswith("/forbidden"):
            return httpx.Response(403, json={"error": "Forbidden"})
        return httpx.Response(200, json={})


@pytest.fixture
def server():
    return FakeServer()


@pytest_asyncio.fixture
async def api(server, tmp_path):
    http = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url="http://api")
    client = ApiClient("http://api", tmp_path / "queue.json", access_token="tok", http=http)
    yield client
    await client.aclose()


@pytest.mark.asyncio
async def test_sends_bearer_token_and_json(api, server):
    resp = await api.create_task("Walk dog", refresh_type="daily")

    assert resp.status_code == 201
    [request] = server.requests
    assert request.headers["Authorization"] == "Bearer tok"
    assert json.loads(request.content) == {"title": "Walk dog", "refreshType": "daily"}


@pytest.mark.asyncio
async def test_offline_write_is_queued(api, server):
    await api.set_online(False)

    resp = await api.update_task("1", completed=True)

    assert resp.status_code == 202
    assert resp.json() == {"message": "Queued for offline sync", "offline": True}
    assert server.requests == []
    assert api.status() == {"online": False, "queued": 1}


@pytest.mark.asyncio
async def test_network_error_queues_write(api, server):
    server.down = True

    resp = await api.delete_task("1")

    assert resp.status_code == 202
    [op] = api.queue.pending()
    assert (op.method, op.url) == ("DELETE", "/api/tasks/1")


@pytest.mark.asyncio
async def test_network_error_on_read_raises(api, server):
    server.down = True

    with pytest.raises(httpx.ConnectError):
        await api.list_tasks()
    assert len(api.queue) == 0


@pytest.mark.asyncio
async def test_http_error_is_not_queued(api):
    with pytest.raises(ApiError) as exc_info:
        await api.request("POST", "/api/forbidden", {})

    assert exc_info.value.status_code == 403
    assert len(api.queue) == 0


@pytest.mark.asyncio
async def test_reconnect_flushes_and_invalidates_cache(api, server):
    assert await api.list_tasks() == [{"id": "1", "title": "Buy milk"}]
    await api.set_online(False)
    await api.update_task("1", title="Buy oat milk")
    server.tasks = [{"id": "1", "title": "Buy oat milk"}]

    # Still served from cache while offline
    assert (await api.list_tasks())[0]["title"] == "Buy milk"

    result = await api.set_online(True)

    assert result.processed == 1
    assert len(api.queue) == 0
    patch_request = server.requests[-1]
    assert (patch_request.method, patch_request.url.path) == ("PATCH", "/api/tasks/1")
    assert (await api.list_tasks())[0]["title"] == "Buy oat milk"


@pytest.mark.asyncio
async def test_start_flushes_leftovers(server, tmp_path):
    queue_path = tmp_path / "queue.json"
    http = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url="http://api")
    previous = ApiClient("http://api", queue_path, http=http, online=False)
    await previous.create_task("from last session")

    restarted = ApiClient("http://api", queue_path, http=http)
    result = await restarted.start()

    assert result.processed == 1
    assert [r.method for r in server.requests] == ["POST"]
    assert await restarted.start() is None
    await http.aclose()


@pytest.mark.asyncio
async def test_successful_write_invalidates_cache(api, server):
    await api.list_tasks()
    await api.list_tasks()
    assert len(server.requests) == 1

    await api.create_task("new")
    server.tasks = [*server.tasks, {"id": "2", "title": "new"}]

    assert len(await api.list_tasks()) == 2
