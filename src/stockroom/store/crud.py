"""Item persistence operations for the reference store."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas import ItemPayload
from .models import Item


async def create_item(session: AsyncSession, data: ItemPayload) -> Item:
    item = Item(**data.model_dump(), history=[])
    session.add(item)
    await session.flush()
    return item


async def list_items(session: AsyncSession) -> Sequence[Item]:
    stmt = select(Item).order_by(Item.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_item(session: AsyncSession, item_id: int) -> Item:
    stmt = select(Item).where(Item.id == item_id)
    result = await session.execute(stmt)
    item = result.scalar_one_or_none()
    if item is None:
        raise NoResultFound(f"Item {item_id} not found")
    return item


async def update_item(session: AsyncSession, item: Item, data: ItemPayload) -> Item:
    """Overwrite ``item`` and append one event describing what changed."""

    changes = {}
    for field, value in data.model_dump().items():
        if getattr(item, field) != value:
            changes[field] = value.isoformat() if isinstance(value, datetime) else value
        setattr(item, field, value)
    event = {"timestamp": datetime.now(timezone.utc).isoformat(), "changes": changes}
    # Reassign so the JSON column is flagged dirty.
    item.history = [*(item.history or []), event]
    await session.flush()
    return item


async def delete_item(session: AsyncSession, item: Item) -> None:
    await session.delete(item)
    await session.flush()


__all__ = [
    "create_item",
    "list_items",
    "get_item",
    "update_item",
    "delete_item",
]
