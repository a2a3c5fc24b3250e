"""Tracking of fire-and-forget asyncio tasks."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from .logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = get_logger(__name__)


class BackgroundTasks:
    """Keep strong references to background tasks until they finish.

    Tasks are created on the running event loop, so `create_background_task`
    must be called from inside it.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def create_background_task(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        """Schedule ``coro`` and track it until it completes."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed", task=task.get_name(), error=str(exc), exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_for_background_tasks(self, timeout: float | None = None) -> None:
        """Wait until no task is pending, including tasks created while waiting.

        Raises:
            TimeoutError: If tasks are still pending after ``timeout`` seconds

        """
        async with asyncio.timeout(timeout):
            while self._tasks:
                await asyncio.wait(list(self._tasks))

    async def cancel_all(self) -> None:
        """Cancel every pending task and wait for them to unwind."""
        tasks = list(self._tasks)
        if not tasks:
            return
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Cancelled background tasks", count=len(tasks))
