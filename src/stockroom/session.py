"""Coordinating layer: owns the view state and turns user intents into store calls."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from .aggregator import ALL_CATEGORIES, PricePolicy, aggregate, category_options, filter_items
from .config import Settings, get_settings
from .deletion import DeleteCoordinator, DeleteIntent, DeleteMode, Sleep
from .errors import StoreError
from .fetcher import ItemStoreClient
from .metrics import build_summary
from .schemas import CanonicalItem, DashboardSummary, ItemPayload, RawItem
from .view_state import ViewState, ViewStore, items_loaded

logger = logging.getLogger(__name__)


class InventorySession:
    """One user's view over the item store.

    Usage::

        async with InventorySession() as session:
            await session.refresh()
            summary = session.summary()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: ItemStoreClient | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or ItemStoreClient(self.settings)
        self.view = ViewStore()
        coordinator_options: dict[str, Any] = {}
        if sleep is not None:
            coordinator_options["sleep"] = sleep
        self.deletes = DeleteCoordinator(
            self.client,
            self.view,
            self.refresh,
            grace_period=self.settings.undo_grace_period,
            late_undo_policy=self.settings.late_undo_policy,
            **coordinator_options,
        )

    async def __aenter__(self) -> "InventorySession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.deletes.aclose()
        await self.client.aclose()

    @property
    def state(self) -> ViewState:
        return self.view.state

    @property
    def items(self) -> tuple[RawItem, ...]:
        return self.view.state.items

    async def refresh(self) -> ViewState:
        items = await self.client.list_items()
        return self.view.dispatch(items_loaded, items)

    async def submit(
        self,
        form: Mapping[str, Any] | ItemPayload,
        editing_id: str | None = None,
    ) -> RawItem | None:
        """Create an item, or update ``editing_id``, then reload the list.

        Invalid form input raises :class:`pydantic.ValidationError`. Store
        failures are logged and reported as ``None``.
        """

        payload = form if isinstance(form, ItemPayload) else ItemPayload.model_validate(form)
        try:
            if editing_id:
                stored = await self.client.update_item(editing_id, payload)
            else:
                stored = await self.client.create_item(payload)
        except StoreError as exc:
            logger.error("Saving item %r failed: %s", payload.name, exc)
            return None
        await self.refresh()
        return stored

    @staticmethod
    def edit_form(item: RawItem) -> dict[str, Any]:
        """Form values for editing ``item``; tags are joined for a text input."""

        return {
            "name": item.name,
            "quantity": item.quantity,
            "price": item.price,
            "category": item.category,
            "tags": "; ".join(item.tags),
        }

    def visible_items(
        self, search: str = "", category: str = ALL_CATEGORIES
    ) -> list[CanonicalItem]:
        filtered = filter_items(self.items, search=search, category=category)
        return aggregate(filtered, PricePolicy(self.settings.price_policy))

    def categories(self) -> list[str]:
        return category_options(self.items)

    def summary(self, now: datetime | None = None) -> DashboardSummary:
        return build_summary(
            self.items,
            low_stock_threshold=self.settings.low_stock_threshold,
            top_n=self.settings.top_n,
            price_policy=self.settings.price_policy,
            now=now,
        )

    async def delete(
        self, item: RawItem, mode: DeleteMode | str = DeleteMode.UNDOABLE
    ) -> DeleteIntent | int:
        return await self.deletes.delete(item, mode)

    async def undo(self) -> RawItem | None:
        return await self.deletes.undo()


__all__ = ["InventorySession"]
