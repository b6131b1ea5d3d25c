from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from coursetrack.models.progress import ChapterProgress, UserActivity, VideoProgress


class ProgressRepo(Protocol):
    def get_video(self, user_id: str, video_id: str) -> VideoProgress | None: ...
    def upsert_video(
        self,
        user_id: str,
        video_id: str,
        *,
        now: int,
        completed: bool | None = None,
        last_watched_seconds: float | None = None,
    ) -> VideoProgress: ...
    def get_chapter(self, user_id: str, chapter_id: str) -> ChapterProgress | None: ...
    def complete_chapter(
        self, user_id: str, chapter_id: str, *, now: int
    ) -> ChapterProgress: ...
    def record_activity(self, user_id: str, date: str) -> bool: ...
    def list_activity(self, user_id: str) -> list[UserActivity]: ...


class InMemoryProgressRepo:
    """Upsert-only progress store.

    Keys are (user_id, video_id) and (user_id, chapter_id), so repeating
    a write replaces the record instead of appending a new one.
    """

    def __init__(self) -> None:
        self._videos: dict[tuple[str, str], VideoProgress] = {}
        self._chapters: dict[tuple[str, str], ChapterProgress] = {}
        self._activity: dict[tuple[str, str], UserActivity] = {}

    def get_video(self, user_id: str, video_id: str) -> VideoProgress | None:
        return self._videos.get((user_id, video_id))

    def upsert_video(
        self,
        user_id: str,
        video_id: str,
        *,
        now: int,
        completed: bool | None = None,
        last_watched_seconds: float | None = None,
    ) -> VideoProgress:
        key = (user_id, video_id)
        current = self._videos.get(key) or VideoProgress(
            user_id=user_id, video_id=video_id
        )
        changes: dict[str, object] = {"updated_at": now}
        if completed is not None:
            changes["completed"] = completed
        if last_watched_seconds is not None:
            changes["last_watched_seconds"] = last_watched_seconds
        updated = replace(current, **changes)
        self._videos[key] = updated
        return updated

    def count_videos(self, user_id: str) -> int:
        return sum(1 for uid, _ in self._videos if uid == user_id)

    def get_chapter(self, user_id: str, chapter_id: str) -> ChapterProgress | None:
        return self._chapters.get((user_id, chapter_id))

    def complete_chapter(
        self, user_id: str, chapter_id: str, *, now: int
    ) -> ChapterProgress:
        record = ChapterProgress(
            user_id=user_id, chapter_id=chapter_id, completed=True, completed_at=now
        )
        self._chapters[(user_id, chapter_id)] = record
        return record

    def record_activity(self, user_id: str, date: str) -> bool:
        """Store today's activity once.  Returns False if it already existed."""
        key = (user_id, date)
        if key in self._activity:
            return False
        self._activity[key] = UserActivity(user_id=user_id, date=date)
        return True

    def list_activity(self, user_id: str) -> list[UserActivity]:
        return sorted(
            (a for (uid, _), a in self._activity.items() if uid == user_id),
            key=lambda a: a.date,
            reverse=True,
        )

    def clear(self) -> None:
        self._videos.clear()
        self._chapters.clear()
        self._activity.clear()
