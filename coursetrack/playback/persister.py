"""Write-behind of resume position and chapter completion.

Position writes are best effort.  The on-screen time comes from the
clock, not from the write, so a failed write changes nothing locally:
it is logged, counted and dropped, and the next tick or pause sends a
fresher value anyway.  The backend upserts by (user, video), so
repeating a write is harmless.

Chapter completion is different: it is shown as a checkmark, so it is
applied optimistically and undone if the request fails.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable
from typing import Protocol

from coursetrack.core.metrics import PROGRESS_WRITES, PROGRESS_WRITES_SKIPPED, TOGGLE_OUTCOMES
from coursetrack.playback.client import TRANSIENT_ERRORS, ProgressApi
from coursetrack.playback.events import ChapterProgressUpdate, EventBus
from coursetrack.playback.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class TimeSource(Protocol):
    def get_current_time(self) -> float: ...


class ProgressPersister:
    def __init__(
        self,
        api: ProgressApi,
        clock: TimeSource,
        *,
        bus: EventBus,
        completed_chapter_ids: Iterable[str] = (),
    ) -> None:
        self._api = api
        self._clock = clock
        self._bus = bus
        self._video_id: str | None = None
        self._completed_chapters = set(completed_chapter_ids)
        self._tasks = BackgroundTasks()

    @property
    def video_id(self) -> str | None:
        return self._video_id

    @property
    def completed_chapters(self) -> frozenset[str]:
        return frozenset(self._completed_chapters)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def bind(self, video_id: str, completed_chapter_ids: Iterable[str] | None = None) -> None:
        self._video_id = video_id
        if completed_chapter_ids is not None:
            self._completed_chapters = set(completed_chapter_ids)

    # -- resume position -----------------------------------------------------

    def save_now(self, reason: str = "manual") -> asyncio.Task | None:
        """Persist the clock's current reading for the bound video."""
        if self._video_id is None:
            return None
        return self.persist(self._video_id, self._clock.get_current_time(), reason=reason)

    def persist(self, video_id: str, seconds: float, *, reason: str) -> asyncio.Task | None:
        # A zero right after a video swap means "no reading yet", not
        # "rewound to the start"; writing it would clobber real progress.
        if not math.isfinite(seconds) or seconds <= 0:
            PROGRESS_WRITES_SKIPPED.inc()
            logger.debug(
                "Skipping progress write with reading %r",
                seconds,
                extra={"video_id": video_id, "reason": reason},
            )
            return None
        return self._tasks.spawn(
            self._write(video_id, math.floor(seconds), reason),
            name=f"progress:{video_id}",
        )

    async def _write(self, video_id: str, seconds: int, reason: str) -> None:
        try:
            await self._api.save_video_progress(video_id, last_watched_seconds=seconds)
        except TRANSIENT_ERRORS as e:
            PROGRESS_WRITES.labels(reason=reason, outcome="failed").inc()
            logger.warning(
                "Progress write dropped for video=%s at %ds: %s",
                video_id,
                seconds,
                e,
                extra={"video_id": video_id, "reason": reason},
            )
            return
        PROGRESS_WRITES.labels(reason=reason, outcome="ok").inc()

    # -- chapter completion --------------------------------------------------

    def mark_chapter_complete(self, chapter_id: str) -> asyncio.Task | None:
        if not chapter_id or chapter_id in self._completed_chapters:
            return None
        self._completed_chapters.add(chapter_id)
        self._bus.publish(ChapterProgressUpdate(chapter_id=chapter_id, completed=True))
        return self._tasks.spawn(
            self._complete_chapter(chapter_id), name=f"chapter:{chapter_id}"
        )

    async def _complete_chapter(self, chapter_id: str) -> None:
        try:
            await self._api.complete_chapter(chapter_id)
        except TRANSIENT_ERRORS as e:
            TOGGLE_OUTCOMES.labels(kind="chapter", outcome="rolled_back").inc()
            logger.warning(
                "Chapter completion failed for %s: %s",
                chapter_id,
                e,
                extra={"chapter_id": chapter_id},
            )
            self._completed_chapters.discard(chapter_id)
            self._bus.publish(ChapterProgressUpdate(chapter_id=chapter_id, completed=False))
            return
        TOGGLE_OUTCOMES.labels(kind="chapter", outcome="ok").inc()

    async def drain(self) -> None:
        """Wait for in-flight writes (call before closing the HTTP client)."""
        await self._tasks.drain()
