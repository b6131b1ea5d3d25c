"""Course catalog and per-user course snapshot.

GET /v1/courses/{course_id} is what the player mounts from: every video
in position order with the caller's resume position, completion and
bookmark flags, and chapter completion.  It is served read-through from
the cache; progress and bookmark writes invalidate the caller's entries.
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from coursetrack.api.dependencies import require_user
from coursetrack.api.schemas import CamelModel
from coursetrack.api.stores import bookmark_repo, catalog_repo, course_cache_key, progress_repo
from coursetrack.models.course import Chapter, Course, Video
from coursetrack.models.principal import Principal
from coursetrack.services.cache import cache_service
from coursetrack.services.chapter_parser import parse_chapters_from_description

router = APIRouter(prefix="/v1/courses", tags=["courses"])

# Explicit invalidation covers every write path we know of; the TTL
# bounds staleness for the ones we don't.
_SNAPSHOT_CACHE_TTL = 300


class CourseSummaryOut(CamelModel):
    id: str
    title: str
    video_count: int


class ChapterOut(CamelModel):
    id: str
    title: str
    start_seconds: float
    end_seconds: float
    order: int
    completed: bool


class VideoOut(CamelModel):
    id: str
    youtube_id: str
    title: str
    position: int
    duration_seconds: int
    completed: bool
    bookmarked: bool
    last_watched_seconds: float
    chapters: list[ChapterOut]


class CourseOut(CamelModel):
    id: str
    title: str
    completion_percentage: int
    videos: list[VideoOut]


# ---------------------------------------------------------------------------
# Sample catalog
# ---------------------------------------------------------------------------

_DEEP_DIVE_DESCRIPTION = """\
Timestamps:
0:00 Introduction
1:00 - Random variables
2:30 | 3:20 Expectation
"""


def _sample_chapters(video_id: str, description: str, duration: int) -> tuple[Chapter, ...]:
    return tuple(
        Chapter(
            id=f"{video_id}-ch{p.order}",
            video_id=video_id,
            title=p.title,
            start_seconds=p.start_seconds,
            end_seconds=p.end_seconds,
            order=p.order,
        )
        for p in parse_chapters_from_description(description, duration)
    )


def seed_sample_courses() -> None:
    """Seed a playlist course and a single-video chaptered course."""
    if catalog_repo.list_courses():
        return

    playlist = Course(id="stats-110", title="Statistics 110")
    playlist = replace(
        playlist,
        videos=tuple(
            Video(
                id=f"stats-110-v{i}",
                course_id=playlist.id,
                youtube_id=f"yt-stats-{i}",
                title=f"Lecture {i}: Probability",
                position=i - 1,
                duration_seconds=3000,
            )
            for i in range(1, 4)
        ),
    )

    single = Video(
        id="deep-dive-v1",
        course_id="deep-dive",
        youtube_id="yt-deep-dive",
        title="Probability in one sitting",
        position=0,
        duration_seconds=400,
    )
    single = replace(
        single, chapters=_sample_chapters(single.id, _DEEP_DIVE_DESCRIPTION, 400)
    )
    deep_dive = Course(id="deep-dive", title="Probability Deep Dive", videos=(single,))

    catalog_repo.add(playlist)
    catalog_repo.add(deep_dive)


seed_sample_courses()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


def _visible(course: Course, principal: Principal) -> bool:
    return course.owner_id is None or course.owner_id == principal.user_id


def _build_snapshot(course: Course, user_id: str) -> CourseOut:
    videos = []
    for video in sorted(course.videos, key=lambda v: v.position):
        progress = progress_repo.get_video(user_id, video.id)
        chapters = [
            ChapterOut(
                id=c.id,
                title=c.title,
                start_seconds=c.start_seconds,
                end_seconds=c.end_seconds,
                order=c.order,
                completed=bool(
                    (cp := progress_repo.get_chapter(user_id, c.id)) and cp.completed
                ),
            )
            for c in sorted(video.chapters, key=lambda c: c.order)
        ]
        videos.append(
            VideoOut(
                id=video.id,
                youtube_id=video.youtube_id,
                title=video.title,
                position=video.position,
                duration_seconds=video.duration_seconds,
                completed=bool(progress and progress.completed),
                bookmarked=bookmark_repo.get(user_id, video.id) is not None,
                last_watched_seconds=progress.last_watched_seconds if progress else 0.0,
                chapters=chapters,
            )
        )

    done = sum(1 for v in videos if v.completed)
    percentage = round(done / len(videos) * 100) if videos else 0
    return CourseOut(
        id=course.id, title=course.title, completion_percentage=percentage, videos=videos
    )


@router.get("", response_model=list[CourseSummaryOut])
def list_courses(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[CourseSummaryOut]:
    return [
        CourseSummaryOut(id=c.id, title=c.title, video_count=len(c.videos))
        for c in catalog_repo.list_courses()
        if _visible(c, principal)
    ]


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> CourseOut:
    course = catalog_repo.get_course(course_id)
    if course is None or not _visible(course, principal):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="course not found")

    key = course_cache_key(principal.user_id, course_id)
    cached = await cache_service.get(key)
    if cached is not None:
        return CourseOut.model_validate(json.loads(cached))

    snapshot = _build_snapshot(course, principal.user_id)
    await cache_service.set(key, snapshot.model_dump_json(), _SNAPSHOT_CACHE_TTL)
    return snapshot
