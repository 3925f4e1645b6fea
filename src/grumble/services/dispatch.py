"""Fire-and-forget execution of remote writes."""

import asyncio
import logging
from collections.abc import Coroutine
from functools import partial

logger = logging.getLogger(__name__)


class Dispatcher:
    """Schedules coroutines on the running loop without awaiting them.

    Failures are logged when the task finishes. ``drain`` waits for every
    outstanding task and is used on shutdown.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[object]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[object, object, object], description: str) -> None:
        """Run ``coro`` in the background on the current event loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(partial(self._finished, description))

    async def drain(self) -> None:
        """Wait until every submitted task has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _finished(self, description: str, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Background %s was cancelled", description)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background %s failed", description, exc_info=exc)
