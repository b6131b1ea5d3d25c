from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Chapter:
    """A named segment of a single video.

    Ordered by ``order`` (0-based) with strictly increasing
    ``start_seconds``.  The last chapter's ``end_seconds`` is the video
    duration, or 0 when the duration was unknown at ingestion.
    """

    id: str
    video_id: str
    title: str
    start_seconds: float
    end_seconds: float
    order: int


@dataclass(frozen=True, slots=True)
class Video:
    id: str
    course_id: str
    youtube_id: str
    title: str
    position: int
    duration_seconds: int = 0
    chapters: tuple[Chapter, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Course:
    """A playlist of videos, or a single video split into chapters.

    ``owner_id`` set means a private course visible only to that user.
    """

    id: str
    title: str
    owner_id: str | None = None
    videos: tuple[Video, ...] = field(default_factory=tuple)
