"""Durable offline mutation queue.

Writes that could not reach the server are stored in a JSON file and
replayed in order once the client is back online.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

QUEUE_KEY = "taskflow-offline-queue"


@dataclass
class OfflineOperation:
    method: str
    url: str
    body: Any = None
    timestamp: float = 0.0


@dataclass(frozen=True)
class FlushResult:
    processed: int
    remaining: int


Sender = Callable[[OfflineOperation], Awaitable[Any]]
Listener = Callable[[int], None]


class QueueStore:
    """JSON file holding the queue under :data:`QUEUE_KEY`; survives restarts."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self) -> list[OfflineOperation]:
        if not self._path.exists():
            return []
        data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        return [OfflineOperation(**item) for item in data.get(QUEUE_KEY, [])]

    def save(self, queue: list[OfflineOperation]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(
            json.dumps({QUEUE_KEY: [asdict(op) for op in queue]}, ensure_ascii=False),
            encoding="utf-8",
        )
        os.replace(tmp, self._path)


class OfflineQueue:
    def __init__(
        self,
        store: QueueStore,
        sender: Sender,
        is_online: Callable[[], bool] = lambda: True,
    ) -> None:
        self._store = store
        self._sender = sender
        self._is_online = is_online
        self._flushing = False
        self._listeners: set[Listener] = set()

    def __len__(self) -> int:
        return len(self._store.load())

    def pending(self) -> list[OfflineOperation]:
        return self._store.load()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` now with the current length and after every change."""
        self._listeners.add(listener)
        listener(len(self))
        return lambda: self._listeners.discard(listener)

    def _notify(self, length: int) -> None:
        for listener in list(self._listeners):
            listener(length)

    def enqueue(self, method: str, url: str, body: Any = None) -> OfflineOperation:
        op = OfflineOperation(method=method.upper(), url=url, body=body, timestamp=time.time())
        queue = self._store.load()
        queue.append(op)
        self._store.save(queue)
        logger.info("Queued %s %s for offline sync (%d pending)", op.method, op.url, len(queue))
        self._notify(len(queue))
        return op

    async def flush(self) -> FlushResult:
        """Replay queued operations in order, stopping at the first failure.

        The failed operation and everything after it stay queued, in order.
        Does nothing while offline or while another flush is running.
        """
        if self._flushing or not self._is_online():
            return FlushResult(processed=0, remaining=len(self))

        self._flushing = True
        try:
            queue = self._store.load()
            if not queue:
                return FlushResult(processed=0, remaining=0)

            processed = 0
            remaining: list[OfflineOperation] = []
            for i, op in enumerate(queue):
                try:
                    await self._sender(op)
                except Exception:
                    logger.exception("Failed to replay offline request %s %s", op.method, op.url)
                    remaining = queue[i:]
                    break
                processed += 1

            # Keep anything enqueued while the replay was awaiting the network
            remaining += self._store.load()[len(queue):]
            self._store.save(remaining)
            self._notify(len(remaining))
            if processed:
                logger.info("Replayed %d offline requests (%d remaining)", processed, len(remaining))
            return FlushResult(processed=processed, remaining=len(remaining))
        finally:
            self._flushing = False
