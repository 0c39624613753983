from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.config import Settings
from stockroom.fetcher import ItemStoreClient
from stockroom.session import InventorySession
from stockroom.store.api import create_app
from stockroom.store.database import create_engine, get_session, make_session_factory
from stockroom.store.management import init_database

from support import FakeStore, ManualClock

STORE_URL = "http://store.test"


@pytest.fixture()
def settings() -> Settings:
    return Settings(environment="test", store_base_url=STORE_URL)


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore(
        [
            {"_id": "1", "name": "Pen", "quantity": 3, "price": 1.5, "category": "Office", "tags": []},
            {"_id": "2", "name": " pen ", "quantity": 2, "price": 1.0, "category": "office", "tags": []},
            {"_id": "3", "name": "Apple", "quantity": 12, "price": 0.5, "category": "Fruits", "tags": ["red"]},
        ]
    )


@pytest.fixture()
async def session(
    settings: Settings, fake_store: FakeStore, clock: ManualClock
) -> AsyncIterator[InventorySession]:
    client = ItemStoreClient(settings, transport=httpx.MockTransport(fake_store.handler))
    async with InventorySession(settings, client=client, sleep=clock.sleep) as session:
        await session.refresh()
        yield session


@pytest.fixture()
async def app(tmp_path) -> AsyncIterator[FastAPI]:
    db_path = tmp_path / "test.db"
    test_settings = Settings(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        environment="test",
        app_name="Test Item Store",
    )

    engine = create_engine(test_settings.database_url, echo=False)
    async_session = make_session_factory(engine)

    await init_database(engine, reset=True)

    async def override_get_session() -> AsyncIterator[AsyncSession]:
        async with async_session() as session:
            yield session

    app = create_app(test_settings)
    app.dependency_overrides[get_session] = override_get_session

    yield app

    await engine.dispose()


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url=STORE_URL) as client:
        yield client
