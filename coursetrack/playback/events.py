"""Cross-panel event bus.

The player, sidebar, chapter sheet and notes drawer are built
independently and never hold references to each other.  They agree on
"which video", "which chapter" and "what changed" by publishing typed
events on a shared ``EventBus`` that is handed to each of them.

Delivery is synchronous and in registration order, to the listeners
registered when ``publish`` is called.  Nothing is replayed: a panel
built after an event fired must take its initial state from the course
snapshot and use the bus only for later changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Literal, TypeVar

from coursetrack.core.metrics import EVENTS_PUBLISHED

logger = logging.getLogger(__name__)

ChangeSource = Literal["auto", "user"]


@dataclass(frozen=True, slots=True)
class VideoIndexChange:
    name: ClassVar[str] = "videoIndexChange"

    video_index: int


@dataclass(frozen=True, slots=True)
class VideoProgressUpdate:
    name: ClassVar[str] = "videoProgressUpdate"

    video_id: str
    completed: bool


@dataclass(frozen=True, slots=True)
class ChapterIndexChange:
    name: ClassVar[str] = "chapterIndexChange"

    chapter_index: int
    source: ChangeSource = "auto"


@dataclass(frozen=True, slots=True)
class ChapterProgressUpdate:
    name: ClassVar[str] = "chapterProgressUpdate"

    chapter_id: str
    completed: bool


@dataclass(frozen=True, slots=True)
class BookmarkUpdate:
    name: ClassVar[str] = "bookmarkUpdate"

    video_id: str
    bookmarked: bool


E = TypeVar("E")
Unsubscribe = Callable[[], None]


class _Listener:
    __slots__ = ("handler", "active")

    def __init__(self, handler: Callable) -> None:
        self.handler = handler
        self.active = True


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[type, list[_Listener]] = {}

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Unsubscribe:
        """Register ``handler`` for ``event_type``.

        Returns the matching unsubscribe callable; calling it more than
        once is harmless.
        """
        listener = _Listener(handler)
        self._listeners.setdefault(event_type, []).append(listener)

        def unsubscribe() -> None:
            listener.active = False
            listeners = self._listeners.get(event_type, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def publish(self, event: object) -> None:
        name = getattr(event, "name", type(event).__name__)
        EVENTS_PUBLISHED.labels(event=name).inc()
        # Snapshot: listeners added during delivery wait for the next event.
        for listener in list(self._listeners.get(type(event), ())):
            if not listener.active:
                continue
            try:
                listener.handler(event)
            except Exception:
                logger.exception("Listener for %s failed", name)

    def listener_count(self, event_type: type | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(v) for v in self._listeners.values())


class Subscriptions:
    """Collects unsubscribe callables so teardown mirrors setup."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._unsubscribes: list[Unsubscribe] = []

    def on(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        self._unsubscribes.append(self._bus.subscribe(event_type, handler))

    def close(self) -> None:
        while self._unsubscribes:
            self._unsubscribes.pop()()

    def __len__(self) -> int:
        return len(self._unsubscribes)
