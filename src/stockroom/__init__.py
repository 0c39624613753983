"""stockroom - reconciliation, analytics and undoable deletes over a remote item store."""
from __future__ import annotations

__version__ = "0.1.0"

from .aggregator import PricePolicy, aggregate
from .config import Settings, get_settings
from .deletion import DeleteCoordinator, DeleteIntent, DeleteMode, IntentState
from .errors import StockroomError, StoreError, UndoExpiredError
from .fetcher import ItemStoreClient
from .metrics import build_summary
from .schemas import CanonicalItem, DashboardSummary, ItemPayload, RawItem
from .session import InventorySession

__all__ = [
    "CanonicalItem",
    "DashboardSummary",
    "DeleteCoordinator",
    "DeleteIntent",
    "DeleteMode",
    "IntentState",
    "InventorySession",
    "ItemPayload",
    "ItemStoreClient",
    "PricePolicy",
    "RawItem",
    "Settings",
    "StockroomError",
    "StoreError",
    "UndoExpiredError",
    "aggregate",
    "build_summary",
    "get_settings",
]
