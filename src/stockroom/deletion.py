"""Optimistic deletes with an undo grace period, plus grouped bulk deletes."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from .aggregator import group_members
from .errors import StoreError, UndoExpiredError
from .fetcher import ItemStoreClient
from .schemas import CanonicalItem, RawItem
from .view_state import PendingDelete, ViewStore, item_removed, item_restored, pending_cleared

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 5.0

Sleep = Callable[[float], Awaitable[Any]]
Refresh = Callable[[], Awaitable[Any]]


class DeleteMode(str, Enum):
    UNDOABLE = "undoable"
    GROUP = "group"


class IntentState(str, Enum):
    PENDING = "pending"
    COMMITTING = "committing"
    COMMITTED = "committed"
    RESTORED = "restored"
    FAILED = "failed"


class CancellationToken:
    """Flag checked by the commit task when its timer fires."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass
class DeleteIntent:
    intent_id: str
    item: RawItem
    commit_at: datetime
    token: CancellationToken = field(default_factory=CancellationToken)
    state: IntentState = IntentState.PENDING
    task: asyncio.Task | None = field(default=None, repr=False)


class DeleteCoordinator:
    """Runs the delete workflow against a shared :class:`ViewStore`.

    ``request_delete`` hides the item at once and arms a timer; ``undo`` before
    the timer fires puts it back without contacting the store. When the timer
    fires the delete is sent; if that fails the optimistic view is dropped and
    ``refresh`` reloads the store's list. Only the most recent delete can be
    undone.
    """

    def __init__(
        self,
        client: ItemStoreClient,
        store: ViewStore,
        refresh: Refresh,
        *,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        late_undo_policy: Literal["reject", "recreate"] = "reject",
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._refresh = refresh
        self.grace_period = grace_period
        self.late_undo_policy = late_undo_policy
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._intents: dict[str, DeleteIntent] = {}
        self._last: DeleteIntent | None = None

    @property
    def last_intent(self) -> DeleteIntent | None:
        """The delete an ``undo`` would act on."""

        return self._last

    def _raw_record(self, item: RawItem) -> RawItem:
        """The stored record behind ``item``, which may be a merged list row."""

        for candidate in self._store.state.items:
            if candidate.id == item.id:
                return candidate
        if isinstance(item, CanonicalItem):
            return RawItem.model_validate(item.model_dump(exclude={"member_ids"}))
        return item

    def request_delete(self, item: RawItem) -> DeleteIntent:
        """Hide the record identified by ``item.id`` and arm its commit timer.

        A merged row deletes only its representative record, so undo puts
        back that record and never the merged totals.
        """

        if item.id is None:
            raise ValueError(f"Item {item.name!r} has no identifier and cannot be deleted")

        item = self._raw_record(item)
        intent = DeleteIntent(
            intent_id=uuid4().hex,
            item=item,
            commit_at=self._clock() + timedelta(seconds=self.grace_period),
        )
        self._store.dispatch(
            item_removed, PendingDelete(intent.intent_id, item, intent.commit_at)
        )
        intent.task = asyncio.create_task(self._commit_later(intent))
        self._intents[intent.intent_id] = intent
        self._last = intent
        logger.info("Item %s removed locally, delete scheduled at %s", item.id, intent.commit_at)
        return intent

    async def _commit_later(self, intent: DeleteIntent) -> None:
        try:
            await self._sleep(self.grace_period)
            # State is read here, at expiry, so an undo at any earlier point wins.
            if intent.token.cancelled or not self._store.state.is_pending(intent.intent_id):
                return
            await self._commit(intent)
        finally:
            self._intents.pop(intent.intent_id, None)

    async def _commit(self, intent: DeleteIntent) -> None:
        intent.state = IntentState.COMMITTING
        try:
            await self._client.delete_item(intent.item.id)
        except StoreError as exc:
            logger.error("Delete of item %s failed, reloading items: %s", intent.item.id, exc)
            await self._rollback(intent)
        except Exception:
            logger.exception("Unexpected error deleting item %s, reloading items", intent.item.id)
            await self._rollback(intent)
        else:
            intent.state = IntentState.COMMITTED
            self._store.dispatch(pending_cleared, intent.intent_id)
            logger.info("Item %s deleted", intent.item.id)

    async def _rollback(self, intent: DeleteIntent) -> None:
        intent.state = IntentState.FAILED
        self._store.dispatch(pending_cleared, intent.intent_id)
        await self._refresh()

    async def undo(self) -> RawItem | None:
        """Restore the most recently deleted item.

        Returns the restored item, or ``None`` if there is nothing to undo.
        Once the delete has been sent, the ``reject`` policy raises
        :class:`UndoExpiredError` and the ``recreate`` policy posts the item
        again, returning the newly created record. A ``recreate`` undo waits
        for an in-flight delete first; if that delete failed the original
        record is still stored and is returned without posting a copy.
        """

        intent = self._last
        if intent is None:
            return None

        if intent.state is IntentState.PENDING:
            intent.token.cancel()
            if intent.task is not None:
                intent.task.cancel()
            intent.state = IntentState.RESTORED
            self._store.dispatch(item_restored, intent.intent_id)
            self._intents.pop(intent.intent_id, None)
            self._last = None
            logger.info("Delete of item %s undone", intent.item.id)
            return intent.item

        if intent.state in (IntentState.COMMITTING, IntentState.COMMITTED):
            if self.late_undo_policy == "reject":
                raise UndoExpiredError(intent.item.id)
            self._last = None
            if intent.state is IntentState.COMMITTING and intent.task is not None:
                await asyncio.gather(intent.task, return_exceptions=True)
            if intent.state is not IntentState.COMMITTED:
                logger.info("Delete of item %s did not complete, nothing to recreate", intent.item.id)
                return intent.item
            try:
                created = await self._client.create_item(intent.item.to_payload())
            except StoreError as exc:
                logger.error("Could not recreate item %s: %s", intent.item.id, exc)
                created = None
            else:
                logger.info("Item %s recreated as %s", intent.item.id, created.id)
            await self._refresh()
            return created

        return None

    async def delete_group(self, item: RawItem) -> int:
        """Delete every item merging with ``item`` at once, without undo."""

        members = [
            member
            for member in group_members(self._store.state.items, item)
            if member.id is not None
        ]
        results = await asyncio.gather(
            *(self._client.delete_item(member.id) for member in members),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            if not isinstance(failure, StoreError):
                raise failure
        if failures:
            logger.error(
                "%d of %d deletes for %r failed: %s",
                len(failures),
                len(members),
                item.name,
                failures[0],
            )
        else:
            logger.info("Deleted all %d %r items", len(members), item.name)
        await self._refresh()
        return len(members)

    async def delete(
        self, item: RawItem, mode: DeleteMode | str = DeleteMode.UNDOABLE
    ) -> DeleteIntent | int:
        if DeleteMode(mode) is DeleteMode.GROUP:
            return await self.delete_group(item)
        return self.request_delete(item)

    async def wait_idle(self) -> None:
        """Wait until every armed timer has fired or been cancelled."""

        tasks = [intent.task for intent in self._intents.values() if intent.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel pending deletes without sending them."""

        for intent in list(self._intents.values()):
            if intent.state is IntentState.PENDING:
                intent.token.cancel()
                if intent.task is not None:
                    intent.task.cancel()
        await self.wait_idle()


__all__ = [
    "DEFAULT_GRACE_PERIOD",
    "CancellationToken",
    "DeleteCoordinator",
    "DeleteIntent",
    "DeleteMode",
    "IntentState",
]
