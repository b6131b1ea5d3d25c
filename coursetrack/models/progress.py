from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VideoProgress:
    """Resume position and completion flag, one per (user_id, video_id)."""

    user_id: str
    video_id: str
    completed: bool = False
    last_watched_seconds: float = 0.0
    updated_at: int | None = None


@dataclass(frozen=True, slots=True)
class ChapterProgress:
    """Chapter completion, one per (user_id, chapter_id)."""

    user_id: str
    chapter_id: str
    completed: bool = False
    completed_at: int | None = None


@dataclass(frozen=True, slots=True)
class UserActivity:
    """A day on which the user completed at least one video."""

    user_id: str
    date: str  # YYYY-MM-DD
    completed: bool = True
