"""Transcript store.

Ordered, append-only log of conversation items for one realtime session.  The
store is owned by the session and passed by reference to the dispatcher, tool
router and configuration manager; observers get read-only snapshots and change
notifications through ``subscribe``.

All mutation happens on the event-loop thread.  Lookups are linear scans over
the item list; no item is ever removed during a session.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Any

from loguru import logger

from mentarie.realtime.models.enums import ItemKind, ItemStatus, Role
from mentarie.realtime.models.transcript import TranscriptItem

TranscriptListener = Callable[[TranscriptItem], None]


class TranscriptStore:
    def __init__(self) -> None:
        self._items: list[TranscriptItem] = []
        self._listeners: list[TranscriptListener] = []

    # -- Query -----------------------------------------------------------------

    @property
    def items(self) -> list[TranscriptItem]:
        """Snapshot of all items in display order."""
        return [item.model_copy() for item in self._items]

    def get(self, item_id: str) -> TranscriptItem | None:
        item = self._find(item_id)
        return item.model_copy() if item else None

    def has_message(self, item_id: str) -> bool:
        return self._find_message(item_id) is not None

    def __len__(self) -> int:
        return len(self._items)

    # -- Mutation --------------------------------------------------------------

    def add_message(
        self,
        item_id: str,
        role: Role,
        text: str = "",
        *,
        status: ItemStatus = ItemStatus.IN_PROGRESS,
    ) -> TranscriptItem | None:
        """Append a MESSAGE item.  No-op (with a warning) if ``item_id`` exists."""
        if self._find_message(item_id) is not None:
            logger.warning("Message already exists for item_id={}, role={}, text={!r}", item_id, role, text)
            return None

        item = TranscriptItem(item_id=item_id, kind=ItemKind.MESSAGE, role=role, text=text, status=status)
        self._items.append(item)
        self._notify(item)
        return item

    def add_breadcrumb(self, title: str, data: dict[str, Any] | None = None) -> TranscriptItem:
        """Append a BREADCRUMB item (agent transfers, tool activity, ...)."""
        item = TranscriptItem(
            item_id=uuid.uuid4().hex[:32],
            kind=ItemKind.BREADCRUMB,
            title=title,
            data=data,
            status=ItemStatus.DONE,
        )
        self._items.append(item)
        self._notify(item)
        return item

    def update_message(self, item_id: str, text: str, *, append: bool = False) -> None:
        """Append to (``append=True``) or replace the text of a MESSAGE item."""
        item = self._find_message(item_id)
        if item is None:
            logger.debug("update_message: no message for item_id={}", item_id)
            return
        item.text = item.text + text if append else text
        self._notify(item)

    def update_item(self, item_id: str, **fields: Any) -> None:
        """Shallow-merge ``fields`` into the item with ``item_id``."""
        for index, item in enumerate(self._items):
            if item.item_id == item_id:
                merged = item.model_validate({**item.model_dump(), **fields})
                self._items[index] = merged
                self._notify(merged)

    # -- Observation -----------------------------------------------------------

    def subscribe(self, listener: TranscriptListener) -> Callable[[], None]:
        """Register a change listener.  Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- Internals -------------------------------------------------------------

    def _find(self, item_id: str) -> TranscriptItem | None:
        return next((item for item in self._items if item.item_id == item_id), None)

    def _find_message(self, item_id: str) -> TranscriptItem | None:
        return next(
            (item for item in self._items if item.item_id == item_id and item.kind == ItemKind.MESSAGE),
            None,
        )

    def _notify(self, item: TranscriptItem) -> None:
        snapshot = item.model_copy()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Transcript listener failed for item {}", item.item_id)
