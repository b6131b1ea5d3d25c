"""Active-chapter inference for single-video courses with chapters.

A chapter's effective end is the next chapter's start when there is
one, so an ``end_seconds`` that drifted at ingestion can't open a gap
or an overlap.  Only the last chapter uses its own stored end.

After a user picks a chapter, automatic inference pauses for a short
window.  The seek and the next clock sample race each other, and
without the pause a stale sample from before the seek would snap the
highlight straight back to the old chapter.
"""

from __future__ import annotations

import bisect
import logging
import math
import time
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Protocol

from coursetrack.core.config import SETTINGS
from coursetrack.models.course import Chapter
from coursetrack.playback.events import (
    ChapterIndexChange,
    ChapterProgressUpdate,
    EventBus,
    Subscriptions,
)

logger = logging.getLogger(__name__)


class InvalidChapterList(ValueError):
    pass


class ChapterTransition(str, Enum):
    AUTO_ADVANCE = "auto"
    USER_SELECT = "user"


class Seeker(Protocol):
    def seek_to(self, seconds: float) -> None: ...


def validate_chapters(chapters: Iterable[Chapter]) -> tuple[Chapter, ...]:
    """Order by ``order`` and reject lists the resolver can't trust.

    Start times must be non-negative and strictly increasing.  Stored
    ends are not checked against the next start since resolution never
    relies on them except for the last chapter.
    """
    ordered = tuple(sorted(chapters, key=lambda c: c.order))
    previous: Chapter | None = None
    for chapter in ordered:
        if not math.isfinite(chapter.start_seconds) or chapter.start_seconds < 0:
            raise InvalidChapterList(
                f"chapter {chapter.id!r} has invalid start {chapter.start_seconds!r}"
            )
        if previous is not None and chapter.start_seconds <= previous.start_seconds:
            raise InvalidChapterList(
                f"chapter {chapter.id!r} starts at {chapter.start_seconds} "
                f"but follows a chapter starting at {previous.start_seconds}"
            )
        previous = chapter
    return ordered


def effective_end(chapters: Sequence[Chapter], index: int) -> float:
    if index + 1 < len(chapters):
        return chapters[index + 1].start_seconds
    return chapters[index].end_seconds


def resolve_chapter_index(chapters: Sequence[Chapter], t: float) -> int | None:
    """Index ``i`` with ``start_i <= t < end_i``, or None outside every chapter.

    ``chapters`` must already be validated.  A last chapter with no
    known end (``end_seconds <= 0``) runs to the end of the video.
    """
    if not chapters or not math.isfinite(t):
        return None
    i = bisect.bisect_right([c.start_seconds for c in chapters], t) - 1
    if i < 0:
        return None
    end = effective_end(chapters, i)
    if end > 0 and t >= end:
        return None
    return i


class ChapterResolver:
    """Tracks the current chapter index for one video.

    Feed it clock readings with ``on_time``.  User selections arrive as
    ``ChapterIndexChange(source="user")`` on the bus, from this
    resolver's own ``select`` or from any panel.
    """

    def __init__(
        self,
        chapters: Iterable[Chapter],
        *,
        bus: EventBus,
        clock: Seeker,
        complete_chapter: Callable[[str], object] | None = None,
        completed_ids: Iterable[str] = (),
        suppress_seconds: float = SETTINGS.chapter_suppress_seconds,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._bus = bus
        self._clock = clock
        self._complete_chapter = complete_chapter
        self._suppress_seconds = suppress_seconds
        self._monotonic = monotonic
        self._subs = Subscriptions(bus)
        self._subs.on(ChapterIndexChange, self._on_index_change)
        self._subs.on(ChapterProgressUpdate, self._on_progress_update)
        self.reset(chapters, completed_ids)

    @property
    def chapters(self) -> tuple[Chapter, ...]:
        return self._chapters

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Chapter | None:
        if not self._chapters:
            return None
        return self._chapters[min(self._index, len(self._chapters) - 1)]

    @property
    def suppressed(self) -> bool:
        return self._monotonic() < self._suppress_until

    def is_completed(self, chapter_id: str) -> bool:
        return chapter_id in self._completed

    def reset(self, chapters: Iterable[Chapter], completed_ids: Iterable[str] = ()) -> None:
        """Start over for a new video."""
        self._chapters = validate_chapters(chapters)
        self._completed = set(completed_ids)
        self._requested: set[str] = set()
        self._index = 0
        self._suppress_until = 0.0

    def close(self) -> None:
        self._subs.close()

    # -- transitions ---------------------------------------------------------

    def on_time(self, t: float) -> None:
        if not self._chapters or self.suppressed:
            return
        # Check the chapter we were in before moving on; a reading exactly
        # on the boundary both completes it and advances past it.
        self._maybe_complete(t)
        idx = resolve_chapter_index(self._chapters, t)
        if idx is None or idx == self._index:
            return
        self._index = idx
        self._bus.publish(ChapterIndexChange(chapter_index=idx, source="auto"))

    def select(self, index: int) -> None:
        self._bus.publish(ChapterIndexChange(chapter_index=index, source="user"))

    def step(self, delta: int) -> None:
        if not self._chapters:
            return
        target = max(0, min(len(self._chapters) - 1, self._index + delta))
        if target != self._index:
            self.select(target)

    def _on_index_change(self, event: ChapterIndexChange) -> None:
        if not 0 <= event.chapter_index < len(self._chapters):
            return
        self._index = event.chapter_index
        if event.source != ChapterTransition.USER_SELECT.value:
            return
        chapter = self._chapters[event.chapter_index]
        self._suppress_until = self._monotonic() + self._suppress_seconds
        self._clock.seek_to(chapter.start_seconds)

    def _on_progress_update(self, event: ChapterProgressUpdate) -> None:
        if event.completed:
            self._completed.add(event.chapter_id)
        else:
            # rolled back; allow another attempt
            self._completed.discard(event.chapter_id)
            self._requested.discard(event.chapter_id)

    def _maybe_complete(self, t: float) -> None:
        chapter = self.current
        if chapter is None or chapter.end_seconds <= 0:
            return
        if chapter.id in self._completed or chapter.id in self._requested:
            return
        if t < chapter.end_seconds:
            return
        self._requested.add(chapter.id)
        logger.info(
            "Chapter %r reached its end at %.1fs",
            chapter.title,
            t,
            extra={"chapter_id": chapter.id},
        )
        if self._complete_chapter is not None:
            self._complete_chapter(chapter.id)
