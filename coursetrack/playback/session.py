"""One course open in the player.

Wires the clock, chapter resolver, progress persister, toggles and
notes drawer to a shared event bus, and routes page-level signals
(player state, tab visibility, unload) to them.  ``close`` undoes every
subscription and timer it created and waits for in-flight writes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from coursetrack.core.config import SETTINGS, Settings
from coursetrack.playback.chapters import ChapterResolver
from coursetrack.playback.client import BookmarkApi, NotesApi, ProgressApi
from coursetrack.playback.clock import PlaybackClock, PlayerAdapter, PlayerState
from coursetrack.playback.events import EventBus, Subscriptions, VideoIndexChange
from coursetrack.playback.notes import NotesDrawer
from coursetrack.playback.persister import ProgressPersister
from coursetrack.playback.snapshot import CourseSnapshot, VideoSnapshot
from coursetrack.playback.toggles import (
    BookmarkToggle,
    CompletionToggle,
    LoggingNotifier,
    Notifier,
    remove_bookmark_on_completion,
)

logger = logging.getLogger(__name__)


class PlayerApi(ProgressApi, BookmarkApi, NotesApi, Protocol):
    """Everything the session calls on the backend."""


class CoursePlayerSession:
    def __init__(
        self,
        course: CourseSnapshot,
        api: PlayerApi,
        *,
        bus: EventBus | None = None,
        notifier: Notifier | None = None,
        initial_video_index: int = 0,
        initial_timestamp: float | None = None,
        settings: Settings = SETTINGS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if not course.videos:
            raise ValueError("course has no videos")
        if not 0 <= initial_video_index < len(course.videos):
            raise ValueError(f"video index {initial_video_index} out of range")

        self.course = course
        self.bus = bus or EventBus()
        self._api = api
        self._notifier = notifier or LoggingNotifier()
        self._initial_video_index = initial_video_index
        self._initial_timestamp = initial_timestamp
        self._video_index = initial_video_index
        self._closed = False

        self.clock = PlaybackClock(
            persist=self._persist,
            tick_seconds=settings.clock_tick_seconds,
            persist_interval_seconds=settings.persist_interval_seconds,
        )
        self.persister = ProgressPersister(
            api, self.clock, bus=self.bus, completed_chapter_ids=course.completed_chapter_ids
        )
        self.bookmarks = BookmarkToggle(
            api,
            self.clock,
            course.bookmarked_video_ids,
            bus=self.bus,
            notifier=self._notifier,
        )
        self.completion = CompletionToggle(
            api,
            course.completed_video_ids,
            bus=self.bus,
            notifier=self._notifier,
            policies=[remove_bookmark_on_completion(self.bookmarks)],
        )
        self.resolver: ChapterResolver | None = None
        if course.is_single_video_chapter_course:
            self.resolver = ChapterResolver(
                course.videos[0].chapters,
                bus=self.bus,
                clock=self.clock,
                complete_chapter=self.persister.mark_chapter_complete,
                completed_ids=course.videos[0].completed_chapter_ids,
                suppress_seconds=settings.chapter_suppress_seconds,
                monotonic=monotonic,
            )
        self.notes = NotesDrawer(
            api,
            self.clock,
            course_id=course.id,
            video_id=self.video.id,
            notifier=self._notifier,
        )

        self._subs = Subscriptions(self.bus)
        self._subs.on(VideoIndexChange, self._on_video_index)
        self._remove_clock_listener = self.clock.add_listener(self._on_time)
        self._load(self._video_index)

    # -- state ---------------------------------------------------------------

    @property
    def video_index(self) -> int:
        return self._video_index

    @property
    def video(self) -> VideoSnapshot:
        return self.course.videos[self._video_index]

    @property
    def chapter_mode(self) -> bool:
        return self.resolver is not None

    @property
    def start_time(self) -> float:
        """Where the current video should open.

        A deep-link timestamp applies only to the video it was given
        for; otherwise the stored resume position is used.
        """
        if (
            self._initial_timestamp
            and self._initial_timestamp > 0
            and self._video_index == self._initial_video_index
        ):
            return self._initial_timestamp
        if self.video.last_watched_seconds > 0:
            return self.video.last_watched_seconds
        return 0.0

    @property
    def position_label(self) -> str:
        if self.resolver is not None:
            total = len(self.resolver.chapters)
            return f"Chapter {min(self.resolver.index + 1, total)} of {total}"
        return f"Lesson {self._video_index + 1} of {len(self.course.videos)}"

    # -- page signals --------------------------------------------------------

    def start(self) -> None:
        self.clock.start()

    def attach_player(self, player: PlayerAdapter) -> None:
        self.clock.attach(player)
        self.clock.cue(self.start_time)

    def on_player_state(self, state: PlayerState) -> None:
        self.clock.on_state_change(state)

    def on_visibility_change(self, hidden: bool) -> None:
        if hidden:
            self.persister.save_now("hidden")

    def on_unload(self) -> None:
        self.persister.save_now("unload")

    # -- navigation ----------------------------------------------------------

    def select_video(self, index: int) -> None:
        self.bus.publish(VideoIndexChange(video_index=index))

    def next(self) -> None:
        if self.resolver is not None:
            self.resolver.step(+1)
        elif self._video_index < len(self.course.videos) - 1:
            self.select_video(self._video_index + 1)

    def previous(self) -> None:
        if self.resolver is not None:
            self.resolver.step(-1)
        elif self._video_index > 0:
            self.select_video(self._video_index - 1)

    # -- toggles -------------------------------------------------------------

    def toggle_completed(self) -> asyncio.Task:
        self.persister.save_now("complete")
        return self.completion.toggle_soon(self.video.id)

    def toggle_bookmark(self) -> asyncio.Task:
        return self.bookmarks.toggle_soon(self.video.id)

    # -- teardown ------------------------------------------------------------

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._subs.close()
        self._remove_clock_listener()
        self.clock.close()
        if self.resolver is not None:
            self.resolver.close()
        self.completion.close()
        self.bookmarks.close()
        await asyncio.gather(
            self.persister.drain(), self.completion.drain(), self.bookmarks.drain()
        )
        logger.debug("Player session closed", extra={"video_id": self.video.id})

    # -- internals -----------------------------------------------------------

    def _persist(self, reason: str) -> None:
        self.persister.save_now(reason)

    def _on_time(self, t: float) -> None:
        if self.resolver is not None:
            self.resolver.on_time(t)

    def _on_video_index(self, event: VideoIndexChange) -> None:
        index = event.video_index
        if index == self._video_index or not 0 <= index < len(self.course.videos):
            return
        # flush the outgoing video before its session is replaced
        self.persister.save_now("switch")
        self._video_index = index
        self._load(index)

    def _load(self, index: int) -> None:
        video = self.course.videos[index]
        self.clock.load(video.id)
        self.persister.bind(video.id)
        if self.notes.video_id != video.id:
            self.notes.switch_video(video.id)
        logger.info(
            "Loaded video %d/%d %r",
            index + 1,
            len(self.course.videos),
            video.title,
            extra={"video_id": video.id},
        )
