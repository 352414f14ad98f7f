from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Set

logger = logging.getLogger(__name__)


class BackgroundSyncs:
    """Keeps references to fire-and-forget sync tasks until they finish."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._pending: Set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._pending)

    def schedule(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def wait(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background sync failed", extra={"syncs": self.name}, exc_info=task.exception())
