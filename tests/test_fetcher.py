from __future__ import annotations

import logging

import httpx
import pytest

from stockroom.config import Settings
from stockroom.errors import StoreError
from stockroom.fetcher import ItemStoreClient
from stockroom.schemas import ItemPayload

from support import FakeStore


def _client(settings: Settings, handler) -> ItemStoreClient:
    return ItemStoreClient(settings, transport=httpx.MockTransport(handler))


async def test_list_items_parses_records(settings: Settings, fake_store: FakeStore) -> None:
    async with _client(settings, fake_store.handler) as client:
        items = await client.list_items()

    assert [item.id for item in items] == ["1", "2", "3"]
    assert fake_store.requests == [("GET", "/api/items")]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"error": "nope"}),
        httpx.Response(200, content=b"<html>"),
        httpx.Response(503),
    ],
)
async def test_list_items_falls_back_to_empty(settings: Settings, response, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="stockroom")
    async with _client(settings, lambda request: response) as client:
        assert await client.list_items() == []
    assert "item list" in caplog.text.lower()


async def test_list_items_survives_network_errors(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(settings, handler) as client:
        assert await client.list_items() == []


async def test_list_items_skips_malformed_records(settings: Settings) -> None:
    body = [{"_id": "1", "name": "Pen"}, {"_id": "2"}, "junk", {"_id": "3", "name": "Cup"}]

    async with _client(settings, lambda request: httpx.Response(200, json=body)) as client:
        items = await client.list_items()

    assert [item.id for item in items] == ["1", "3"]


async def test_create_update_delete(settings: Settings, fake_store: FakeStore) -> None:
    payload = ItemPayload(name="Mug", quantity=4, price=6.5, category="Kitchen", tags=["white"])

    async with _client(settings, fake_store.handler) as client:
        created = await client.create_item(payload)
        updated = await client.update_item(created.id, payload.model_copy(update={"quantity": 8}))
        await client.delete_item(created.id)

    assert created.name == "Mug"
    assert updated.quantity == 8
    assert len(updated.history) == 1
    assert fake_store.requests[-1] == ("DELETE", f"/api/items/{created.id}")
    assert all(item["_id"] != created.id for item in fake_store.items)


async def test_write_failures_raise_store_error(settings: Settings, fake_store: FakeStore) -> None:
    fake_store.fail_methods.add("POST")

    async with _client(settings, fake_store.handler) as client:
        with pytest.raises(StoreError) as excinfo:
            await client.create_item(ItemPayload(name="Mug", quantity=1, price=1))
        with pytest.raises(StoreError) as missing:
            await client.delete_item("does-not-exist")

    assert excinfo.value.status_code == 500
    assert excinfo.value.method == "POST"
    assert missing.value.status_code == 404
