"""Task registry — keeps fire-and-forget fan-out tasks alive and reports their failures."""

from __future__ import annotations

import asyncio
from typing import Coroutine, TypeVar

from instrukt_ai_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TaskRegistry:
    """Tracks background tasks so they are not garbage collected mid-flight.

    Completed tasks drop out automatically; a task that raised is logged from
    its done callback, so nothing propagates back to whoever spawned it.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[object]] = set()

    def _on_task_done(self, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error("background task failed", task=task.get_name(), error=str(exc), exc_info=exc)

    def spawn(self, coro: Coroutine[object, object, T], name: str | None = None) -> asyncio.Task[T]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)  # type: ignore[arg-type]
        task.add_done_callback(self._on_task_done)  # type: ignore[arg-type]
        return task

    async def drain(self) -> None:
        """Wait for every tracked task, including ones spawned while waiting."""
        while True:
            pending = {task for task in self._tasks if not task.done()}
            if not pending:
                return
            await asyncio.wait(pending)

    async def shutdown(self, timeout: float = 5.0) -> None:
        if not self._tasks:
            return
        task_count = len(self._tasks)
        logger.info("Shutting down tracked tasks", count=task_count, timeout=timeout)
        for task in self._tasks:
            if not task.done():
                task.cancel()
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Shutdown timeout; tasks still pending", pending=len(pending), total=task_count)

    def task_count(self) -> int:
        return len(self._tasks)
