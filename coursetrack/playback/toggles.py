"""Optimistic boolean toggles: video completed, video bookmarked.

Each toggle is a command with an ``apply`` and a ``rollback``.  The
local value flips first, the request follows, and a failure runs the
rollback, but only while the command is still the user's latest intent
for that video: its generation is the newest one and the local value is
still the one it applied.  Any later click owns the state from then on.

Successes follow the same rule: a response for a click the user has
since overridden publishes nothing and runs no policies.  Once a toggle
is closed (its panel went away), late responses change nothing and
publish nothing.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import ClassVar, Protocol

from coursetrack.core.metrics import TOGGLE_OUTCOMES
from coursetrack.playback.client import TRANSIENT_ERRORS, BookmarkApi, ProgressApi
from coursetrack.playback.events import BookmarkUpdate, EventBus, VideoProgressUpdate
from coursetrack.playback.persister import TimeSource
from coursetrack.playback.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """User-visible transient notices (toasts)."""

    def success(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier for headless use: notices go to the log."""

    def success(self, message: str) -> None:
        logger.info("%s", message)

    def error(self, message: str) -> None:
        logger.warning("%s", message)


@dataclass(frozen=True, slots=True)
class ToggleCommand:
    key: str
    previous: bool
    target: bool
    apply: Callable[[], None]
    rollback: Callable[[], None]


CompletionPolicy = Callable[[str, bool], Awaitable[object] | None]


class OptimisticToggle(ABC):
    kind: ClassVar[str]
    failure_message: ClassVar[str]

    def __init__(self, initial: Iterable[str], *, bus: EventBus, notifier: Notifier) -> None:
        self._on = set(initial)
        self._bus = bus
        self._notifier = notifier
        self._generation: dict[str, int] = {}
        self._closed = False
        self._tasks = BackgroundTasks()

    def is_on(self, key: str) -> bool:
        return key in self._on

    @property
    def values(self) -> frozenset[str]:
        return frozenset(self._on)

    @property
    def closed(self) -> bool:
        return self._closed

    def command(self, key: str) -> ToggleCommand:
        previous = key in self._on
        return ToggleCommand(
            key=key,
            previous=previous,
            target=not previous,
            apply=lambda: self._set(key, not previous),
            rollback=lambda: self._set(key, previous),
        )

    async def toggle(self, key: str) -> bool:
        """Flip ``key`` and confirm with the backend.  True on success."""
        cmd = self.command(key)
        cmd.apply()
        generation = self._generation.get(key, 0) + 1
        self._generation[key] = generation

        try:
            await self._send(key, cmd.target)
        except TRANSIENT_ERRORS as e:
            self._on_failure(cmd, generation, e)
            return False

        if self._closed:
            return True
        if not self._is_latest(cmd, generation):
            TOGGLE_OUTCOMES.labels(kind=self.kind, outcome="stale").inc()
            logger.debug("Superseded %s toggle for %s confirmed", self.kind, key)
            return True
        TOGGLE_OUTCOMES.labels(kind=self.kind, outcome="ok").inc()
        await self._on_success(key, cmd.target)
        return True

    def toggle_soon(self, key: str) -> asyncio.Task:
        """Fire-and-forget ``toggle``, tracked until ``drain``."""
        return self._tasks.spawn(self.toggle(key), name=f"{self.kind}:{key}")

    def close(self) -> None:
        self._closed = True

    async def drain(self) -> None:
        await self._tasks.drain()

    def _is_latest(self, cmd: ToggleCommand, generation: int) -> bool:
        return (
            self._generation.get(cmd.key) == generation
            and (cmd.key in self._on) == cmd.target
        )

    def _on_failure(self, cmd: ToggleCommand, generation: int, error: Exception) -> None:
        if self._closed:
            return
        if not self._is_latest(cmd, generation):
            TOGGLE_OUTCOMES.labels(kind=self.kind, outcome="stale").inc()
            logger.debug("Superseded %s toggle for %s failed: %s", self.kind, cmd.key, error)
            return
        cmd.rollback()
        TOGGLE_OUTCOMES.labels(kind=self.kind, outcome="rolled_back").inc()
        logger.warning(
            "%s toggle for %s rolled back: %s",
            self.kind,
            cmd.key,
            error,
            extra={"video_id": cmd.key},
        )
        self._notifier.error(self.failure_message)

    def _set(self, key: str, value: bool) -> None:
        if value:
            self._on.add(key)
        else:
            self._on.discard(key)

    @abstractmethod
    async def _send(self, key: str, value: bool) -> None: ...

    @abstractmethod
    async def _on_success(self, key: str, value: bool) -> None: ...


class CompletionToggle(OptimisticToggle):
    kind = "completion"
    failure_message = "Failed to update video progress"

    def __init__(
        self,
        api: ProgressApi,
        initial: Iterable[str] = (),
        *,
        bus: EventBus,
        notifier: Notifier,
        policies: Iterable[CompletionPolicy] = (),
    ) -> None:
        super().__init__(initial, bus=bus, notifier=notifier)
        self._api = api
        self.policies = list(policies)

    async def _send(self, key: str, value: bool) -> None:
        await self._api.save_video_progress(key, completed=value)

    async def _on_success(self, key: str, value: bool) -> None:
        self._bus.publish(VideoProgressUpdate(video_id=key, completed=value))
        self._notifier.success(
            "Video marked as completed" if value else "Video marked as not completed"
        )
        for policy in self.policies:
            result = policy(key, value)
            if inspect.isawaitable(result):
                await result


class BookmarkToggle(OptimisticToggle):
    kind = "bookmark"
    failure_message = "Failed to update bookmark"

    def __init__(
        self,
        api: BookmarkApi,
        clock: TimeSource,
        initial: Iterable[str] = (),
        *,
        bus: EventBus,
        notifier: Notifier,
    ) -> None:
        super().__init__(initial, bus=bus, notifier=notifier)
        self._api = api
        self._clock = clock

    async def _send(self, key: str, value: bool) -> None:
        if value:
            t = self._clock.get_current_time()
            await self._api.create_bookmark(
                key, timestamp_seconds=math.floor(t) if math.isfinite(t) else 0
            )
        else:
            await self._api.delete_bookmark(key)

    async def _on_success(self, key: str, value: bool) -> None:
        self._bus.publish(BookmarkUpdate(video_id=key, bookmarked=value))
        self._notifier.success("Video bookmarked" if value else "Bookmark removed")


def remove_bookmark_on_completion(bookmarks: BookmarkToggle) -> CompletionPolicy:
    """Policy: a video that was just completed drops out of the bookmarks."""

    async def policy(video_id: str, completed: bool) -> None:
        if completed and bookmarks.is_on(video_id):
            await bookmarks.toggle(video_id)

    return policy
