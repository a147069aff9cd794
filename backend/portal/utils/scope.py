"""
Request scope tied to the lifetime of a view.

When the view goes away (page change, client disconnect) every request it
started is cancelled, so late results are never delivered to it.
"""
import asyncio
from typing import Any, Awaitable, Set

from portal.utils.logger import get_logger

logger = get_logger(__name__)


class RequestScope:
    """
    Usage:
        async with RequestScope() as scope:
            inbox = await scope.run(ctx.mail.list_inbox())
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self.closed = False

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Start coro as a task owned by this scope."""
        if self.closed:
            if asyncio.iscoroutine(coro):
                coro.close()
            raise asyncio.CancelledError("Request scope is closed")

        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, coro: Awaitable[Any]) -> Any:
        """
        Await coro inside the scope.

        Raises:
            asyncio.CancelledError: The scope was closed first
        """
        return await self.spawn(coro)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def close(self) -> None:
        """Cancel everything still running and wait for it to unwind."""
        self.closed = True
        tasks = [task for task in self._tasks if not task.done()]
        if not tasks:
            return

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug(f"Cancelled {len(tasks)} pending requests")

    async def __aenter__(self) -> "RequestScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
