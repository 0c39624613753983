"""Merge duplicate item records into canonical grouped items."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum

from .schemas import UNCATEGORIZED, CanonicalItem, RawItem, coerce_number

ALL_CATEGORIES = "All"


class PricePolicy(str, Enum):
    """How the price of a merged group is derived from its members."""

    SUM = "sum"
    MAX = "max"


def normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def grouping_key(item: RawItem) -> str:
    """Key shared by duplicates: trimmed, lower-cased name and category."""

    return f"{normalize(item.name)}|{normalize(item.category or UNCATEGORIZED)}"


def _member_ids(item: RawItem) -> list[str]:
    if isinstance(item, CanonicalItem):
        return list(item.member_ids)
    return [item.id] if item.id is not None else []


def aggregate(
    items: Iterable[RawItem],
    price_policy: PricePolicy | str = PricePolicy.SUM,
) -> list[CanonicalItem]:
    """Group ``items`` by :func:`grouping_key` and merge each group.

    The first record seen for a key supplies the identifier, display casing,
    tags, history and restock date. Quantities are summed; prices are summed
    under :attr:`PricePolicy.SUM` (the historical behaviour) or the highest
    member price is kept under :attr:`PricePolicy.MAX`. Groups come out in the
    order their key was first seen.
    """

    policy = PricePolicy(price_policy)
    groups: dict[str, dict] = {}
    for item in items:
        key = grouping_key(item)
        quantity = coerce_number(item.quantity)
        price = coerce_number(item.price)
        group = groups.get(key)
        if group is None:
            groups[key] = {
                "first": item,
                "quantity": quantity,
                "price": price,
                "member_ids": _member_ids(item),
            }
            continue
        group["quantity"] += quantity
        if policy is PricePolicy.SUM:
            group["price"] += price
        else:
            group["price"] = max(group["price"], price)
        group["member_ids"].extend(_member_ids(item))

    merged: list[CanonicalItem] = []
    for group in groups.values():
        first: RawItem = group["first"]
        merged.append(
            CanonicalItem(
                id=first.id,
                name=first.name,
                quantity=group["quantity"],
                price=group["price"],
                category=first.category,
                tags=list(first.tags),
                history=list(first.history),
                restock_by=first.restock_by,
                member_ids=group["member_ids"],
            )
        )
    return merged


def group_members(items: Iterable[RawItem], target: RawItem) -> list[RawItem]:
    """Every item in ``items`` that would merge with ``target``."""

    key = grouping_key(target)
    return [item for item in items if grouping_key(item) == key]


def filter_items(
    items: Iterable[RawItem],
    search: str = "",
    category: str = ALL_CATEGORIES,
) -> list[RawItem]:
    """Name substring search (case-insensitive) and exact category filter."""

    needle = search.lower()
    return [
        item
        for item in items
        if needle in item.name.lower()
        and (category == ALL_CATEGORIES or item.category == category)
    ]


def category_options(items: Sequence[RawItem]) -> list[str]:
    """``"All"`` followed by each distinct category in first-seen order."""

    seen = dict.fromkeys(item.category for item in items)
    return [ALL_CATEGORIES, *seen]


__all__ = [
    "ALL_CATEGORIES",
    "PricePolicy",
    "normalize",
    "grouping_key",
    "aggregate",
    "group_members",
    "filter_items",
    "category_options",
]
