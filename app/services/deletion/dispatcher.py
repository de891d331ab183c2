"""Fire-and-forget execution of delivery and hand-off work.

Callers return to the client without waiting for an email, SMS or
deletion-queue hand-off to finish. Failures are logged and sent to Sentry,
never raised back into the request that scheduled them.
"""

import asyncio
from typing import Any, Awaitable, Callable

from app.utils.logger import get_logger
from app.utils.sentry_utils import capture_exception

logger = get_logger(__name__)


class BackgroundDispatcher:
    """Runs coroutines as detached asyncio tasks and keeps them referenced."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        name: str | None = None,
        **kwargs: Any,
    ) -> asyncio.Task:
        task = asyncio.create_task(func(*args, **kwargs), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Background task {task.get_name()} failed: {exc.__class__.__name__}: {exc}",
                exc_info=exc,
            )
            capture_exception(exc)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for scheduled work; used on shutdown and in tests."""
        while self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)
            if timeout is not None:
                break


dispatcher = BackgroundDispatcher()
