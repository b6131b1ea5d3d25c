"""Timers and fire-and-forget work on the running event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class Interval:
    """Calls ``callback`` every ``seconds`` until cancelled.

    The first call happens one full period after ``start``.  A callback
    that raises is logged and the interval keeps running.
    """

    def __init__(self, seconds: float, callback: Callable[[], Any], *, name: str) -> None:
        self.seconds = seconds
        self._callback = callback
        self._name = name
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"interval:{self._name}"
        )

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.seconds)
            try:
                self._callback()
            except Exception:
                logger.exception("Interval %s callback failed", self._name)


class BackgroundTasks:
    """Holds references to spawned tasks until they finish.

    The event loop keeps only weak references to tasks, so a write
    nobody awaits must be anchored somewhere or it can be collected
    mid-flight.  ``drain`` waits for everything spawned so far,
    including tasks spawned while draining.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
