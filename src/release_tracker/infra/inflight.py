"""Per-key registry of in-flight asyncio tasks.

At most one task runs per key. Callers that need the result await the
running task; callers that do not simply leave it running. Tasks are never
cancelled on behalf of a caller that lost interest.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRegistry(Generic[T]):
    def __init__(self, name: str) -> None:
        self._name = name
        self._tasks: dict[Hashable, asyncio.Task[T]] = {}

    def is_running(self, key: Hashable) -> bool:
        return key in self._tasks

    def running(self) -> list[Hashable]:
        return list(self._tasks)

    def start(
        self, key: Hashable, factory: Callable[[], Awaitable[T]]
    ) -> tuple[asyncio.Task[T], bool]:
        """
        Return the task running for ``key``, starting one if there is none.

        ``factory`` is only invoked when a new task is started.

        Returns:
            (task, started) where ``started`` is False if the task was already running
        """
        existing = self._tasks.get(key)
        if existing is not None:
            return existing, False

        async def run() -> T:
            return await factory()

        task = asyncio.get_running_loop().create_task(run(), name=f"{self._name}:{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda done: self._finished(key, done))
        return task, True

    async def join(self, key: Hashable) -> T | None:
        """
        Await the task running for ``key`` and return its result.

        The wait is shielded: a caller being cancelled does not cancel the
        shared task. Returns None when nothing is running.

        Raises:
            Exception: Whatever the task raised
        """
        task = self._tasks.get(key)
        if task is None:
            return None
        return await asyncio.shield(task)

    async def drain(self) -> None:
        """Wait for every running task to finish. Failures are already logged."""
        while self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    def _finished(self, key: Hashable, task: asyncio.Task[T]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

        if task.cancelled():
            logger.warning(
                "In-flight task cancelled",
                extra={"registry": self._name, "cache_key": str(key)},
            )
            return

        exc = task.exception()
        if exc is not None:
            # Background failures never reach unrelated requests
            logger.error(
                "In-flight task failed",
                exc_info=exc,
                extra={"registry": self._name, "cache_key": str(key)},
            )
