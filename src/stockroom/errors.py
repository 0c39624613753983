"""Exception types raised by the stockroom client."""
from __future__ import annotations


class StockroomError(Exception):
    """Base class for stockroom errors."""


class StoreError(StockroomError):
    """A request against the remote item store failed."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code


class UndoExpiredError(StockroomError):
    """Undo arrived after the delete had already been sent to the store."""

    def __init__(self, item_id: str | None) -> None:
        super().__init__(f"Delete of item {item_id} was already committed")
        self.item_id = item_id


__all__ = ["StockroomError", "StoreError", "UndoExpiredError"]
