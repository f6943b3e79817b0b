"""Transcript item model."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from mentarie.realtime.models.enums import ItemKind, ItemStatus, Role


def pretty_timestamp(now: datetime | None = None) -> str:
    """Return a display timestamp such as ``3:04:05 PM``."""
    now = now or datetime.now()
    return f"{now:%I:%M:%S %p}".lstrip("0")


def now_ms() -> int:
    return int(time.time() * 1000)


class TranscriptItem(BaseModel):
    """One conversational turn or breadcrumb tracked for display.

    ``text`` carries the message body and grows through delta appends while a
    response streams in.  Breadcrumbs use ``title`` and ``data`` instead.
    """

    item_id: str
    kind: ItemKind = ItemKind.MESSAGE
    role: Role | None = None
    text: str = ""
    title: str | None = None
    data: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=pretty_timestamp)
    created_at_ms: int = Field(default_factory=now_ms)
    status: ItemStatus = ItemStatus.IN_PROGRESS
