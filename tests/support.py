"""Test doubles shared by the test modules."""
from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx


class ManualClock:
    """Stand-in for ``asyncio.sleep`` whose time only moves on :meth:`advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + delay, future))
        await future

    async def _settle(self) -> None:
        for _ in range(20):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        await self._settle()
        self.now += seconds
        due = [entry for entry in self._sleepers if entry[0] <= self.now]
        self._sleepers = [entry for entry in self._sleepers if entry[0] > self.now]
        for _, future in due:
            if not future.done():
                future.set_result(None)
        await self._settle()


class FakeStore:
    """In-memory ``/api/items`` backend for ``httpx.MockTransport``."""

    def __init__(self, items: list[dict[str, Any]] | None = None) -> None:
        self.items = [dict(item) for item in items or []]
        self.requests: list[tuple[str, str]] = []
        self.fail_methods: set[str] = set()
        self._next_id = 1000

    def deletes(self) -> list[str]:
        return [path.rsplit("/", 1)[-1] for method, path in self.requests if method == "DELETE"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.requests.append((method, path))
        if method in self.fail_methods:
            return httpx.Response(500, json={"detail": "boom"})
        if method == "GET":
            return httpx.Response(200, json=self.items)
        if method == "POST":
            self._next_id += 1
            body = json.loads(request.content)
            body.update({"_id": str(self._next_id), "history": []})
            self.items.append(body)
            return httpx.Response(201, json=body)

        item_id = path.rsplit("/", 1)[-1]
        existing = next((item for item in self.items if item["_id"] == item_id), None)
        if existing is None:
            return httpx.Response(404, json={"detail": "not found"})
        if method == "PUT":
            existing.update(json.loads(request.content))
            existing["history"] = [*existing.get("history", []), {"event": "update"}]
            return httpx.Response(200, json=existing)
        self.items.remove(existing)
        return httpx.Response(204)


class DeleteGate:
    """Wraps a :class:`FakeStore` handler so DELETE requests wait for :meth:`release`."""

    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.started = asyncio.Event()
        self._released = asyncio.Event()

    def release(self) -> None:
        self._released.set()

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            self.started.set()
            await self._released.wait()
        return self.store.handler(request)
