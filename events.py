"""In-process fan-out of panel state changes to renderers."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

_event_counter = itertools.count()

logger = logging.getLogger("status_panel.events")


class EventType(StrEnum):
    """Categories of events published by the panel."""

    STATUS_UPDATE = "status_update"
    FETCH_ERROR = "fetch_error"
    LOADING_CHANGED = "loading_changed"
    DEBUG_TOGGLED = "debug_toggled"
    PANEL_STATUS = "panel_status"


class PanelEvent(BaseModel):
    """A single state change, stamped with a process-wide sequence id."""

    id: int = Field(default_factory=lambda: next(_event_counter))
    type: EventType
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    data: dict[str, Any] = Field(default_factory=dict)


class EventBus:
    """Delivers each published :class:`PanelEvent` to every subscriber queue.

    Events published while nobody is subscribed are dropped.  A
    subscriber that falls behind loses its oldest queued event, never
    the newest.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[PanelEvent]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish_nowait(self, event: PanelEvent) -> None:
        for queue in self._subscribers:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                with contextlib.suppress(asyncio.QueueEmpty):
                    queue.get_nowait()
                queue.put_nowait(event)
        logger.debug(
            "Published %s to %d subscriber(s)", event.type, len(self._subscribers)
        )

    def subscribe(self, max_queue: int = 100) -> asyncio.Queue[PanelEvent]:
        """Return a new queue that will receive future events."""
        queue: asyncio.Queue[PanelEvent] = asyncio.Queue(maxsize=max_queue)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[PanelEvent]) -> None:
        with contextlib.suppress(ValueError):
            self._subscribers.remove(queue)

    @contextlib.asynccontextmanager
    async def subscription(
        self, max_queue: int = 100
    ) -> AsyncIterator[asyncio.Queue[PanelEvent]]:
        """Async context manager that unsubscribes on exit."""
        queue = self.subscribe(max_queue)
        try:
            yield queue
        finally:
            self.unsubscribe(queue)
