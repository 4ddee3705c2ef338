from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from ailang.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Coroutine

__all__: list[str] = ["BackgroundTaskQueue"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class BackgroundTaskQueue:
    """Tracks fire-and-forget coroutines so they can be awaited or cancelled later.

    Callers submit work without waiting for it. ``flush()`` waits until every submitted task,
    including tasks submitted while flushing, has finished; ``cancel_all()`` stops them.
    Exceptions escaping a task are logged, never re-raised.
    """

    def __init__(self, name: str = "background") -> None:
        self.name: str = name
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def pending(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any] | None:
        """Schedule a coroutine on the running event loop.

        Args:
            coro (Coroutine): Work to run.
            name (str | None): Task name, used in log messages.

        Returns:
            asyncio.Task | None: The scheduled task, or None when no event loop is running
                (the coroutine is closed without running).
        """
        try:
            loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("'%s': no running event loop; task '%s' dropped", self.name, name or coro.__qualname__)
            coro.close()
            return None

        task: asyncio.Task[Any] = loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("'%s': task '%s' cancelled", self.name, task.get_name())
            return
        err: BaseException | None = task.exception()
        if err is not None:
            logger.error("'%s': task '%s' failed: %r", self.name, task.get_name(), err)

    async def flush(self) -> None:
        """Wait until no submitted task is pending."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            # done callbacks run on the next loop iteration
            await asyncio.sleep(0)

    async def cancel_all(self) -> None:
        """Cancel every pending task and wait for the cancellations to settle."""
        if not self._tasks:
            return
        logger.info("'%s': cancelling %d pending task(s)", self.name, len(self._tasks))
        tasks: list[asyncio.Task[Any]] = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.difference_update(tasks)
