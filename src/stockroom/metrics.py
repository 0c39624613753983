"""Statistics derived from an item snapshot.

Every function here is pure: it reads the sequence it is given and returns new
objects. Time-dependent results take an explicit ``now`` that is captured once
per call.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TypeVar

from .aggregator import PricePolicy, aggregate
from .schemas import (
    CategoryCount,
    DashboardSummary,
    LowStockEntry,
    PopularityEntry,
    PopularityReport,
    RawItem,
    RestockReminder,
    TopStockedEntry,
)

LOW_STOCK_THRESHOLD = 5
DEFAULT_TOP_N = 3

ItemT = TypeVar("ItemT", bound=RawItem)


def total_items(items: Sequence[RawItem]) -> int:
    return len(items)


def inventory_value(items: Sequence[RawItem]) -> str:
    """Sum of ``quantity * price`` formatted with two decimals."""

    total = sum(item.quantity * item.price for item in items)
    return f"{total:.2f}"


def low_stock(items: Sequence[ItemT], threshold: int = LOW_STOCK_THRESHOLD) -> list[ItemT]:
    return [item for item in items if item.quantity < threshold]


def top_stocked(items: Sequence[ItemT], n: int = DEFAULT_TOP_N) -> list[ItemT]:
    # sorted() is stable, so equal quantities keep their input order.
    return sorted(items, key=lambda item: item.quantity, reverse=True)[:n]


def category_distribution(items: Sequence[RawItem]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for item in items:
        counts[item.category] = counts.get(item.category, 0) + 1
    return counts


def popular_items(items: Sequence[ItemT]) -> list[ItemT]:
    """Items with at least one recorded update, most updated first."""

    updated = [item for item in items if item.history]
    return sorted(updated, key=lambda item: len(item.history), reverse=True)


def top_popular(items: Sequence[ItemT], n: int = DEFAULT_TOP_N) -> list[ItemT]:
    return popular_items(items)[:n]


def least_popular(items: Sequence[ItemT], n: int = DEFAULT_TOP_N) -> list[ItemT]:
    if n <= 0:
        return []
    return popular_items(items)[-n:]


def _content_key(item: RawItem) -> str:
    return item.model_dump_json()


def _popularity_entry(item: RawItem) -> PopularityEntry:
    return PopularityEntry(
        id=item.id,
        name=item.name,
        category=item.category,
        update_count=len(item.history),
    )


def popularity_report(items: Sequence[RawItem], n: int = DEFAULT_TOP_N) -> PopularityReport:
    """Most and least updated items.

    When both rankings hold exactly the same items, which happens whenever
    fewer than ``2 * n`` items have history, ``least`` is left empty so the
    same items are not listed twice.
    """

    ranked = popular_items(items)
    top = ranked[:n]
    least = ranked[-n:] if n > 0 else []
    top_keys = {_content_key(item) for item in top}
    least_keys = {_content_key(item) for item in least}
    return PopularityReport(
        top=[_popularity_entry(item) for item in top],
        least=None if top_keys == least_keys else [_popularity_entry(item) for item in least],
    )


def restock_reminders(
    items: Sequence[RawItem], now: datetime | None = None
) -> list[RestockReminder]:
    """Items with a restock date, earliest first, flagged when already due."""

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    reminders = [
        RestockReminder(
            id=item.id,
            name=item.name,
            restock_by=item.restock_by,
            is_past=item.restock_by < now,
        )
        for item in items
        if item.restock_by is not None
    ]
    return sorted(reminders, key=lambda reminder: reminder.restock_by)


def build_summary(
    raw_items: Sequence[RawItem],
    *,
    low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    top_n: int = DEFAULT_TOP_N,
    price_policy: PricePolicy | str = PricePolicy.SUM,
    merge_duplicates: bool = True,
    now: datetime | None = None,
) -> DashboardSummary:
    """Compute every dashboard statistic over one snapshot.

    Stock figures use the merged view unless ``merge_duplicates`` is false;
    popularity always ranks the raw records since merging keeps only the first
    member's history.
    """

    now = now or datetime.now(timezone.utc)
    items = aggregate(raw_items, price_policy) if merge_duplicates else list(raw_items)
    distribution = category_distribution(items)
    low = low_stock(items, low_stock_threshold)
    return DashboardSummary(
        total_items=total_items(items),
        category_total=len(distribution),
        low_stock_count=len(low),
        inventory_value=inventory_value(items),
        categories=[
            CategoryCount(category=category, count=count)
            for category, count in distribution.items()
        ],
        top_stocked=[
            TopStockedEntry(rank=rank, id=item.id, name=item.name, quantity=item.quantity)
            for rank, item in enumerate(top_stocked(items, top_n), start=1)
        ],
        low_stock=[
            LowStockEntry(id=item.id, name=item.name, quantity=item.quantity) for item in low
        ],
        popularity=popularity_report(raw_items, top_n),
        restock_reminders=restock_reminders(items, now),
        generated_at=now,
    )


__all__ = [
    "LOW_STOCK_THRESHOLD",
    "DEFAULT_TOP_N",
    "total_items",
    "inventory_value",
    "low_stock",
    "top_stocked",
    "category_distribution",
    "popular_items",
    "top_popular",
    "least_popular",
    "popularity_report",
    "restock_reminders",
    "build_summary",
]
