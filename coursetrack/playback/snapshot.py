"""Initial state handed to the player and its panels on mount.

Built from ``GET /v1/courses/{id}``.  The event bus only carries changes
made after this point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from coursetrack.models.course import Chapter


@dataclass(frozen=True, slots=True)
class VideoSnapshot:
    id: str
    youtube_id: str
    title: str
    position: int
    completed: bool = False
    bookmarked: bool = False
    last_watched_seconds: float = 0.0
    chapters: tuple[Chapter, ...] = ()
    completed_chapter_ids: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class CourseSnapshot:
    id: str
    title: str
    videos: tuple[VideoSnapshot, ...]
    completion_percentage: int = 0

    @property
    def is_single_video_chapter_course(self) -> bool:
        return len(self.videos) == 1 and bool(self.videos[0].chapters)

    @property
    def completed_video_ids(self) -> frozenset[str]:
        return frozenset(v.id for v in self.videos if v.completed)

    @property
    def bookmarked_video_ids(self) -> frozenset[str]:
        return frozenset(v.id for v in self.videos if v.bookmarked)

    @property
    def completed_chapter_ids(self) -> frozenset[str]:
        return frozenset(cid for v in self.videos for cid in v.completed_chapter_ids)

    @staticmethod
    def from_api(payload: dict[str, Any]) -> CourseSnapshot:
        videos = []
        for v in sorted(payload.get("videos", []), key=lambda v: v["position"]):
            chapters = tuple(
                Chapter(
                    id=c["id"],
                    video_id=v["id"],
                    title=c["title"],
                    start_seconds=float(c["startSeconds"]),
                    end_seconds=float(c["endSeconds"]),
                    order=int(c["order"]),
                )
                for c in v.get("chapters", [])
            )
            videos.append(
                VideoSnapshot(
                    id=v["id"],
                    youtube_id=v["youtubeId"],
                    title=v["title"],
                    position=v["position"],
                    completed=bool(v.get("completed")),
                    bookmarked=bool(v.get("bookmarked")),
                    last_watched_seconds=float(v.get("lastWatchedSeconds") or 0),
                    chapters=chapters,
                    completed_chapter_ids=frozenset(
                        c["id"] for c in v.get("chapters", []) if c.get("completed")
                    ),
                )
            )
        return CourseSnapshot(
            id=payload["id"],
            title=payload["title"],
            videos=tuple(videos),
            completion_percentage=int(payload.get("completionPercentage", 0)),
        )
