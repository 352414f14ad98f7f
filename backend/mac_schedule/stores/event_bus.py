from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, AsyncIterator, DefaultDict, List


logger = logging.getLogger(__name__)


class BookingEventBus:
    """In-memory fan-out of booking changes per session to live listeners."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[asyncio.Queue[dict[str, Any]]]] = defaultdict(list)

    async def publish(self, session_id: str, event: dict[str, Any]) -> None:
        for queue in list(self._listeners.get(session_id, [])):
            await queue.put(event)
        logger.info(
            "booking_event",
            extra={"session_id": session_id, "event": event.get("type")},
        )

    def listener_count(self, session_id: str) -> int:
        return len(self._listeners.get(session_id, []))

    async def stream(self, session_id: str) -> AsyncIterator[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._listeners[session_id].append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._listeners[session_id].remove(queue)
            if not self._listeners[session_id]:
                del self._listeners[session_id]


event_bus = BookingEventBus()
