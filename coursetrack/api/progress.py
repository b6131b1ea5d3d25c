"""Video and chapter progress writes.

Both endpoints upsert: one VideoProgress per (user, video) and one
ChapterProgress per (user, chapter).  The player's persister calls the
video endpoint every few seconds while playing, so repeats must be
cheap and must never create duplicates.

Marking a video complete also records the day's activity, which feeds
the streak endpoint.
"""

from __future__ import annotations

import datetime
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field

from coursetrack.api.dependencies import require_user
from coursetrack.api.schemas import CamelModel
from coursetrack.api.stores import catalog_repo, progress_repo, user_course_cache_pattern
from coursetrack.models.principal import Principal
from coursetrack.services.cache import cache_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class VideoProgressIn(CamelModel):
    completed: bool | None = None
    last_watched_seconds: float | None = Field(default=None, ge=0)


class VideoProgressOut(CamelModel):
    video_id: str
    completed: bool
    last_watched_seconds: float


class ChapterProgressOut(CamelModel):
    chapter_id: str
    completed: bool
    completed_at: int | None


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


@router.post("/video/{video_id}", response_model=VideoProgressOut)
async def save_video_progress(
    video_id: str,
    body: VideoProgressIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> VideoProgressOut:
    if body.completed is None and body.last_watched_seconds is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="completed or lastWatchedSeconds is required",
        )
    if catalog_repo.get_video(video_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video not found")

    now = _now()
    record = progress_repo.upsert_video(
        principal.user_id,
        video_id,
        now=int(now.timestamp()),
        completed=body.completed,
        last_watched_seconds=body.last_watched_seconds,
    )

    if body.completed:
        if progress_repo.record_activity(principal.user_id, now.date().isoformat()):
            logger.info(
                "First completion today for user=%s",
                principal.user_id,
                extra={"user_id": principal.user_id, "video_id": video_id},
            )

    await cache_service.delete_pattern(user_course_cache_pattern(principal.user_id))

    return VideoProgressOut(
        video_id=video_id,
        completed=record.completed,
        last_watched_seconds=record.last_watched_seconds,
    )


@router.post("/chapter/{chapter_id}", response_model=ChapterProgressOut)
async def complete_chapter(
    chapter_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> ChapterProgressOut:
    chapter = catalog_repo.get_chapter(chapter_id)
    if chapter is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="chapter not found")

    video = catalog_repo.get_video(chapter.video_id)
    course = catalog_repo.get_course(video.course_id) if video else None
    if course is not None and course.owner_id not in (None, principal.user_id):
        logger.warning(
            "Chapter progress denied: user=%s course=%s",
            principal.user_id,
            course.id,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    record = progress_repo.complete_chapter(
        principal.user_id, chapter_id, now=int(_now().timestamp())
    )
    await cache_service.delete_pattern(user_course_cache_pattern(principal.user_id))

    return ChapterProgressOut(
        chapter_id=chapter_id,
        completed=record.completed,
        completed_at=record.completed_at,
    )
