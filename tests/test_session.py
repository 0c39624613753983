from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from stockroom.config import Settings
from stockroom.fetcher import ItemStoreClient
from stockroom.session import InventorySession

from support import FakeStore, ManualClock

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


async def test_refresh_and_visible_items(session: InventorySession) -> None:
    visible = session.visible_items()

    assert [(item.name, item.quantity, item.price) for item in visible] == [
        ("Pen", 5, 2.5),
        ("Apple", 12, 0.5),
    ]
    assert [item.name for item in session.visible_items(search="app")] == ["Apple"]
    assert [item.name for item in session.visible_items(category="office")] == [" pen "]
    assert session.categories() == ["All", "Office", "office", "Fruits"]


async def test_visible_items_honour_price_policy(fake_store: FakeStore, clock: ManualClock) -> None:
    settings = Settings(environment="test", store_base_url="http://store.test", price_policy="max")
    client = ItemStoreClient(settings, transport=httpx.MockTransport(fake_store.handler))
    async with InventorySession(settings, client=client, sleep=clock.sleep) as session:
        await session.refresh()
        assert session.visible_items()[0].price == 1.5


async def test_summary(session: InventorySession) -> None:
    summary = session.summary(now=NOW)

    assert summary.total_items == 2
    assert summary.low_stock == []
    assert summary.inventory_value == "18.50"
    assert [entry.name for entry in summary.top_stocked] == ["Apple", "Pen"]


async def test_submit_creates_and_updates(session: InventorySession, fake_store: FakeStore) -> None:
    created = await session.submit(
        {"name": "Mug", "quantity": "4", "price": "6.5", "category": "Kitchen", "tags": "white; big"}
    )

    assert created.tags == ["white", "big"]
    assert created.id in [item.id for item in session.items]

    form = session.edit_form(created)
    assert form["tags"] == "white; big"
    form["quantity"] = 9
    updated = await session.submit(form, editing_id=created.id)

    assert updated.quantity == 9
    assert fake_store.requests[-2] == ("PUT", f"/api/items/{created.id}")
    assert fake_store.requests[-1] == ("GET", "/api/items")


async def test_submit_failure_is_logged_not_raised(
    session: InventorySession, fake_store: FakeStore, caplog
) -> None:
    fake_store.fail_methods.add("POST")

    result = await session.submit({"name": "Mug", "quantity": 1, "price": 1})

    assert result is None
    assert "Saving item 'Mug' failed" in caplog.text
    assert fake_store.requests[-1] == ("POST", "/api/items")


async def test_submit_rejects_invalid_form(session: InventorySession) -> None:
    with pytest.raises(ValidationError):
        await session.submit({"name": "", "quantity": 1, "price": 1})


async def test_full_workflow_against_reference_store(
    settings: Settings, client: AsyncClient, clock: ManualClock
) -> None:
    store_client = ItemStoreClient(settings, client=client)
    async with InventorySession(settings, client=store_client, sleep=clock.sleep) as session:
        await session.submit(
            {"name": "Pen", "quantity": 3, "price": 1.5, "category": "Office", "restockBy": "2024-05-01"}
        )
        pen = await session.submit({"name": " pen ", "quantity": 2, "price": 1.0, "category": "office"})
        await session.submit({"name": "Apple", "quantity": 12, "price": 0.5, "category": "Fruits"})
        await session.submit(
            {"name": " pen ", "quantity": 1, "price": 1.0, "category": "office"}, editing_id=pen.id
        )

        summary = session.summary(now=NOW)
        assert summary.total_items == 2
        assert [entry.name for entry in summary.low_stock] == ["Pen"]
        assert [entry.name for entry in summary.restock_reminders] == ["Pen"]
        assert [entry.update_count for entry in summary.popularity.top] == [1]
        assert summary.popularity.least is None

        intent = session.deletes.request_delete(session.items[-1])
        await clock.advance(session.deletes.grace_period)
        await session.deletes.wait_idle()
        await session.refresh()

        assert intent.item.name == "Apple"
        assert [item.name for item in session.items] == ["Pen", " pen "]

        deleted = await session.delete(session.visible_items()[0], mode="group")
        assert deleted == 2
        assert session.items == ()
