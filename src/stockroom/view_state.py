"""Immutable client-side view of the item list and pending deletes."""
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from .schemas import RawItem


@dataclass(frozen=True)
class PendingDelete:
    """An item removed optimistically whose delete has not resolved yet."""

    intent_id: str
    item: RawItem
    commit_at: datetime


@dataclass(frozen=True)
class ViewState:
    items: tuple[RawItem, ...] = ()
    pending: tuple[PendingDelete, ...] = ()

    def is_pending(self, intent_id: str) -> bool:
        return any(record.intent_id == intent_id for record in self.pending)

    def pending_item_ids(self) -> set[str]:
        return {record.item.id for record in self.pending if record.item.id is not None}


def items_loaded(state: ViewState, items: Iterable[RawItem]) -> ViewState:
    """Replace the list with the store's, still hiding items awaiting delete."""

    hidden = state.pending_item_ids()
    return replace(state, items=tuple(item for item in items if item.id not in hidden))


def item_removed(state: ViewState, record: PendingDelete) -> ViewState:
    target = record.item
    remaining = tuple(
        item
        for item in state.items
        if not (item is target or (target.id is not None and item.id == target.id))
    )
    return replace(state, items=remaining, pending=(*state.pending, record))


def item_restored(state: ViewState, intent_id: str) -> ViewState:
    """Put the item of ``intent_id`` back at the head of the list."""

    record = next((r for r in state.pending if r.intent_id == intent_id), None)
    if record is None:
        return state
    return ViewState(
        items=(record.item, *state.items),
        pending=tuple(r for r in state.pending if r.intent_id != intent_id),
    )


def pending_cleared(state: ViewState, intent_id: str) -> ViewState:
    return replace(
        state, pending=tuple(r for r in state.pending if r.intent_id != intent_id)
    )


class ViewStore:
    """Holder for the current :class:`ViewState`, swapped through reducers."""

    def __init__(self, state: ViewState | None = None) -> None:
        self._state = state or ViewState()

    @property
    def state(self) -> ViewState:
        return self._state

    def dispatch(self, reducer: Callable[..., ViewState], *args: Any) -> ViewState:
        self._state = reducer(self._state, *args)
        return self._state


__all__ = [
    "PendingDelete",
    "ViewState",
    "ViewStore",
    "items_loaded",
    "item_removed",
    "item_restored",
    "pending_cleared",
]
