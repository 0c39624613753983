"""Async HTTP client for the remote item store."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .config import Settings, get_settings
from .errors import StoreError
from .schemas import ItemPayload, RawItem

logger = logging.getLogger(__name__)

ITEMS_PATH = "/api/items"


class ItemStoreClient:
    """Thin wrapper over ``httpx.AsyncClient`` speaking the ``/api/items`` contract.

    Writes raise :class:`StoreError`. :meth:`list_items` never raises: the
    read path degrades to an empty list.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.store_base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ItemStoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StoreError(
                f"{method} {path} returned {exc.response.status_code}",
                method=method,
                url=str(exc.request.url),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}", method=method, url=path) from exc
        return response

    @staticmethod
    def _parse_item(response: httpx.Response, *, method: str, path: str) -> RawItem:
        try:
            return RawItem.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise StoreError(
                f"{method} {path} returned an unreadable item", method=method, url=path
            ) from exc

    async def list_items(self) -> list[RawItem]:
        """Fetch every item; any failure or non-list body yields ``[]``."""

        try:
            response = await self._request("GET", ITEMS_PATH)
            data = response.json()
        except (StoreError, ValueError) as exc:
            logger.warning("Falling back to an empty item list: %s", exc)
            return []
        if not isinstance(data, list):
            logger.warning("Item list response was %s, not a list", type(data).__name__)
            return []

        items: list[RawItem] = []
        for index, record in enumerate(data):
            try:
                items.append(RawItem.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping malformed item at index %d: %s", index, exc)
        return items

    async def create_item(self, payload: ItemPayload) -> RawItem:
        response = await self._request("POST", ITEMS_PATH, json=payload.to_wire())
        return self._parse_item(response, method="POST", path=ITEMS_PATH)

    async def update_item(self, item_id: str, payload: ItemPayload) -> RawItem:
        path = f"{ITEMS_PATH}/{item_id}"
        response = await self._request("PUT", path, json=payload.to_wire())
        return self._parse_item(response, method="PUT", path=path)

    async def delete_item(self, item_id: str) -> None:
        await self._request("DELETE", f"{ITEMS_PATH}/{item_id}")


__all__ = ["ITEMS_PATH", "ItemStoreClient"]
