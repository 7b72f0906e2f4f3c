"""
Shutdown coordination.

ShutdownSignal is the single process-wide broadcast: open while serving,
closed once shutdown is requested. TaskTracker keeps a handle on every
connection and scan task so shutdown can wait for them to drain.
"""

import asyncio
import logging
from typing import Coroutine, Optional, Set


class ShutdownSignal:
    """One-way open -> closed broadcast shared by every accept loop."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._event.is_set()

    def close(self):
        self._event.set()

    async def wait(self):
        await self._event.wait()


class TaskTracker:
    """
    Owns strong references to spawned tasks until they finish.
    Failures that escape a task are logged here instead of being lost.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self):
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error("Task %s failed", task.get_name(), exc_info=exc)

    async def drain(self, timeout: Optional[float] = None) -> int:
        """
        Waits up to `timeout` seconds for tracked tasks to finish.
        Returns the number still running; nothing is cancelled.
        """
        if not self._tasks:
            return 0
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        return len(pending)
