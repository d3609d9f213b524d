"""API client with offline queueing and a small response cache."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from taskflow.client.network import send_http_request
from taskflow.client.offline import FlushResult, OfflineOperation, OfflineQueue, QueueStore

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def offline_response() -> httpx.Response:
    """Stand-in 202 returned to callers whose write was queued."""
    return httpx.Response(
        202,
        json={"message": "Queued for offline sync", "offline": True},
    )


class ApiClient:
    """Talks to the Taskflow API.

    Writes made while offline, or that fail with a network error, go to the
    offline queue and resolve with a 202. HTTP error statuses raise
    ``ApiError`` and are never queued. Reads are never queued.
    """

    def __init__(
        self,
        base_url: str,
        queue_path: str | Path,
        access_token: str | None = None,
        http: httpx.AsyncClient | None = None,
        online: bool = True,
    ) -> None:
        self.access_token = access_token
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=15)
        self._online = online
        self._cache: dict[str, Any] = {}
        self.queue = OfflineQueue(QueueStore(queue_path), self._replay, lambda: self._online)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Connectivity ───────────────────────────────────────

    @property
    def online(self) -> bool:
        return self._online

    def status(self) -> dict:
        """Snapshot for an offline banner."""
        return {"online": self._online, "queued": len(self.queue)}

    async def start(self) -> FlushResult | None:
        """Replay anything left over from a previous run, once, if online."""
        if self._online and len(self.queue) > 0:
            return await self._flush()
        return None

    async def set_online(self, online: bool) -> FlushResult | None:
        was_online, self._online = self._online, online
        if online and not was_online:
            logger.info("Back online, flushing offline queue")
            return await self._flush()
        return None

    async def _flush(self) -> FlushResult:
        result = await self.queue.flush()
        if result.processed > 0:
            self.invalidate()
        return result

    # ── Requests ───────────────────────────────────────────

    async def _replay(self, op: OfflineOperation) -> httpx.Response:
        return await send_http_request(self._http, op.method, op.url, op.body, self.access_token)

    async def request(self, method: str, url: str, data: Any = None) -> httpx.Response:
        method = method.upper()
        queueable = method in MUTATING_METHODS
        if queueable and not self._online:
            self.queue.enqueue(method, url, data)
            return offline_response()

        try:
            resp = await send_http_request(self._http, method, url, data, self.access_token)
        except httpx.TransportError as e:
            if not queueable:
                raise
            logger.warning("Network error on %s %s (%s), queueing", method, url, e)
            self.queue.enqueue(method, url, data)
            return offline_response()

        if queueable:
            self.invalidate()
        return resp

    async def get_json(self, url: str, refresh: bool = False) -> Any:
        """GET with a per-URL cache, cleared by any successful write."""
        if not refresh and url in self._cache:
            return self._cache[url]
        resp = await self.request("GET", url)
        data = resp.json()
        self._cache[url] = data
        return data

    def invalidate(self) -> None:
        self._cache.clear()

    # ── Convenience ────────────────────────────────────────

    async def list_tasks(self) -> list[dict]:
        return await self.get_json("/api/tasks")

    async def list_notes(self) -> list[dict]:
        return await self.get_json("/api/notes")

    async def list_categories(self) -> list[dict]:
        return await self.get_json("/api/categories")

    async def create_task(self, title: str, refresh_type: str = "none", **fields) -> httpx.Response:
        body = {"title": title, "refreshType": refresh_type, **fields}
        return await self.request("POST", "/api/tasks", body)

    async def update_task(self, task_id: str, **changes) -> httpx.Response:
        return await self.request("PATCH", f"/api/tasks/{task_id}", changes)

    async def delete_task(self, task_id: str) -> httpx.Response:
        return await self.request("DELETE", f"/api/tasks/{task_id}")

