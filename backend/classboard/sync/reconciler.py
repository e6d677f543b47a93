"""
Keep a local list in step with one change-feed topic.

A ``Reconciler`` seeds its ``LiveCollection`` with a bulk fetch, then applies
every change event for its topic:

* INSERT upserts by id, so the optimistic copy of a locally created row and
  the feed's copy of the same row collapse into one entry;
* UPDATE replaces the row with the same id and does nothing when it is absent;
* DELETE removes the row whose id matches the old row image.

Replaying events is therefore idempotent. Changing scope cancels the old
subscription before the new one is opened.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Protocol

from classboard.schemas.change import ChangeEvent, ChangeKind
from classboard.services.change_feed import Subscription
from classboard.sync.errors import StoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

INSERT_AT_END = "end"
INSERT_AT_START = "start"


class Feed(Protocol):
    def subscribe(self, topic: str) -> Subscription: ...


class LiveCollection:
    """Ordered rows keyed by ``id``."""

    def __init__(self, insert_at: str = INSERT_AT_END) -> None:
        if insert_at not in (INSERT_AT_END, INSERT_AT_START):
            raise ValueError(f"insert_at must be 'end' or 'start', got {insert_at!r}")
        self.insert_at = insert_at
        self._rows: List[Row] = []

    @staticmethod
    def key(row: Row) -> str:
        return str(row["id"])

    @property
    def rows(self) -> List[Row]:
        return list(self._rows)

    @property
    def ids(self) -> List[str]:
        return [self.key(row) for row in self._rows]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(list(self._rows))

    def __contains__(self, row_id: object) -> bool:
        return self._index(str(row_id)) is not None

    def _index(self, row_id: str) -> Optional[int]:
        for index, row in enumerate(self._rows):
            if self.key(row) == row_id:
                return index
        return None

    def get(self, row_id: Any) -> Optional[Row]:
        index = self._index(str(row_id))
        return None if index is None else self._rows[index]

    def replace(self, rows: List[Row]) -> None:
        self._rows = list(rows)

    def clear(self) -> None:
        self._rows = []

    def upsert(self, row: Row) -> bool:
        """Insert or replace in place. Returns True when the row is new."""
        index = self._index(self.key(row))
        if index is not None:
            self._rows[index] = row
            return False
        if self.insert_at == INSERT_AT_START:
            self._rows.insert(0, row)
        else:
            self._rows.append(row)
        return True

    def update(self, row: Row) -> bool:
        index = self._index(self.key(row))
        if index is None:
            return False
        self._rows[index] = row
        return True

    def remove(self, row_id: Any) -> bool:
        index = self._index(str(row_id))
        if index is None:
            return False
        del self._rows[index]
        return True


class Reconciler:
    """Seed-then-follow synchronization of one scoped collection."""

    def __init__(
        self,
        name: str,
        fetch: Callable[[str], Awaitable[List[Row]]],
        topic_for: Callable[[str], str],
        feed: Feed,
        insert_at: str = INSERT_AT_END,
    ) -> None:
        self.name = name
        self.collection = LiveCollection(insert_at=insert_at)
        self.scope: Optional[str] = None
        self.topic: Optional[str] = None
        self.loading = False
        self.error: Optional[str] = None
        self._fetch = fetch
        self._topic_for = topic_for
        self._feed = feed
        self._subscription: Optional[Subscription] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[Callable[["Reconciler"], None]] = []

    @property
    def rows(self) -> List[Row]:
        return self.collection.rows

    @property
    def active(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def add_listener(self, callback: Callable[["Reconciler"], None]) -> None:
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    async def activate(self, scope: Any) -> None:
        """Follow ``scope``: subscribe, then seed from a full fetch."""
        scope = str(scope)
        if scope == self.scope and self.active:
            # Already following; only a failed seed needs another fetch.
            if self.error is not None:
                await self.reload()
            return
        self.deactivate()
        self.collection.clear()
        self.scope = scope
        self.topic = self._topic_for(scope)
        # Events raised during the seed fetch stay queued.
        self._subscription = self._feed.subscribe(self.topic)
        logger.debug(f"{self.name}: following {self.topic}")
        await self.reload()

    async def reload(self) -> bool:
        """Replace local rows with a fresh fetch; keeps them on failure."""
        if self.scope is None:
            return False
        self.loading = True
        try:
            rows = await self._fetch(self.scope)
        except StoreError as e:
            logger.warning(f"{self.name}: loading {self.scope} failed: {e.message}")
            self.error = e.user_message
            return False
        finally:
            self.loading = False
        self.collection.replace(rows)
        self.error = None
        self._changed()
        return True

    def apply(self, event: ChangeEvent) -> bool:
        """Apply one change event. Returns True when local rows changed."""
        if event.topic != self.topic:
            logger.debug(f"{self.name}: ignoring event for {event.topic}")
            return False

        if event.kind is ChangeKind.INSERT and event.new:
            self.collection.upsert(event.new)
            changed = True
        elif event.kind is ChangeKind.UPDATE and event.new:
            changed = self.collection.update(event.new)
        elif event.kind is ChangeKind.DELETE and event.row_id is not None:
            changed = self.collection.remove(event.row_id)
        else:
            changed = False

        if changed:
            self._changed()
        return changed

    def apply_pending(self) -> int:
        """Apply every event already queued on the subscription."""
        if self._subscription is None:
            return 0
        applied = 0
        while True:
            event = self._subscription.get_nowait()
            if event is None:
                return applied
            self.apply(event)
            applied += 1

    def upsert_local(self, row: Row) -> None:
        """Optimistically show a row returned by a local mutation."""
        self.collection.upsert(row)
        self._changed()

    async def run(self) -> None:
        subscription = self._subscription
        if subscription is None:
            return
        async for event in subscription:
            self.apply(event)

    def start(self) -> asyncio.Task:
        """Apply events in the background until deactivated."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            self._task.add_done_callback(self._follow_finished)
        return self._task

    def _follow_finished(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"{self.name}: following {self.topic} stopped", exc_info=exc)
            self.error = "Pembaruan otomatis terhenti, muat ulang halaman"

    def deactivate(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.scope = None
        self.topic = None
