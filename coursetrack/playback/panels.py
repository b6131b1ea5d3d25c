"""Display-side state for the sidebar and the chapter sheet.

Neither panel talks to the player.  Each starts from the course
snapshot, follows the bus for changes, and turns clicks into events.
"""

from __future__ import annotations

from coursetrack.playback.clock import format_timestamp
from coursetrack.playback.events import (
    BookmarkUpdate,
    ChapterIndexChange,
    ChapterProgressUpdate,
    EventBus,
    Subscriptions,
    VideoIndexChange,
    VideoProgressUpdate,
)
from coursetrack.playback.snapshot import CourseSnapshot


class SidebarPanel:
    def __init__(self, course: CourseSnapshot, bus: EventBus, *, video_index: int = 0) -> None:
        self._bus = bus
        self.video_ids = [v.id for v in course.videos]
        self.video_index = video_index
        self.completed = set(course.completed_video_ids)
        self.bookmarked = set(course.bookmarked_video_ids)
        self._subs = Subscriptions(bus)
        self._subs.on(VideoIndexChange, self._on_video_index)
        self._subs.on(VideoProgressUpdate, self._on_progress)
        self._subs.on(BookmarkUpdate, self._on_bookmark)

    @property
    def completion_percentage(self) -> int:
        if not self.video_ids:
            return 0
        return round(len(self.completed) / len(self.video_ids) * 100)

    def select_video(self, index: int) -> None:
        self._bus.publish(VideoIndexChange(video_index=index))

    def close(self) -> None:
        self._subs.close()

    def _on_video_index(self, event: VideoIndexChange) -> None:
        self.video_index = event.video_index

    def _on_progress(self, event: VideoProgressUpdate) -> None:
        if event.completed:
            self.completed.add(event.video_id)
        else:
            self.completed.discard(event.video_id)

    def _on_bookmark(self, event: BookmarkUpdate) -> None:
        if event.bookmarked:
            self.bookmarked.add(event.video_id)
        else:
            self.bookmarked.discard(event.video_id)


class ChapterSheetPanel:
    def __init__(self, course: CourseSnapshot, bus: EventBus, *, chapter_index: int = 0) -> None:
        self._bus = bus
        video = course.videos[0] if course.videos else None
        self.chapters = sorted(video.chapters, key=lambda c: c.order) if video else []
        self.chapter_index = chapter_index
        self.completed = set(video.completed_chapter_ids) if video else set()
        self._subs = Subscriptions(bus)
        self._subs.on(ChapterIndexChange, self._on_chapter_index)
        self._subs.on(ChapterProgressUpdate, self._on_progress)

    def rows(self) -> list[tuple[str, str, bool, bool]]:
        """(label, title, is_active, is_completed) per chapter."""
        return [
            (
                format_timestamp(c.start_seconds),
                c.title,
                i == self.chapter_index,
                c.id in self.completed,
            )
            for i, c in enumerate(self.chapters)
        ]

    def select_chapter(self, index: int) -> None:
        self._bus.publish(ChapterIndexChange(chapter_index=index, source="user"))

    def close(self) -> None:
        self._subs.close()

    def _on_chapter_index(self, event: ChapterIndexChange) -> None:
        if 0 <= event.chapter_index < len(self.chapters):
            self.chapter_index = event.chapter_index

    def _on_progress(self, event: ChapterProgressUpdate) -> None:
        if event.completed:
            self.completed.add(event.chapter_id)
        else:
            self.completed.discard(event.chapter_id)
