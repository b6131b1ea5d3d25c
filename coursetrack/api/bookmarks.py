from __future__ import annotations

import datetime
import logging
import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import Field

from coursetrack.api.dependencies import require_user
from coursetrack.api.schemas import CamelModel
from coursetrack.api.stores import bookmark_repo, catalog_repo, user_course_cache_pattern
from coursetrack.models.bookmark import Bookmark
from coursetrack.models.principal import Principal
from coursetrack.services.cache import cache_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/bookmarks", tags=["bookmarks"])


class BookmarkIn(CamelModel):
    video_id: str = Field(min_length=1)
    timestamp_seconds: float = Field(default=0, ge=0)
    note: str | None = None


class BookmarkOut(CamelModel):
    id: str
    video_id: str
    course_id: str
    title: str
    youtube_id: str
    timestamp_seconds: int
    note: str | None
    created_at: int


def _to_out(bookmark: Bookmark) -> BookmarkOut:
    video = catalog_repo.get_video(bookmark.video_id)
    return BookmarkOut(
        id=bookmark.id,
        video_id=bookmark.video_id,
        course_id=video.course_id if video else "",
        title=video.title if video else "",
        youtube_id=video.youtube_id if video else "",
        timestamp_seconds=bookmark.timestamp_seconds,
        note=bookmark.note,
        created_at=bookmark.created_at,
    )


@router.get("", response_model=list[BookmarkOut])
def list_bookmarks(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[BookmarkOut]:
    return [_to_out(b) for b in bookmark_repo.list_for_user(principal.user_id)]


@router.post("", response_model=BookmarkOut, status_code=status.HTTP_201_CREATED)
async def create_bookmark(
    body: BookmarkIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> BookmarkOut:
    if catalog_repo.get_video(body.video_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video not found")
    if bookmark_repo.get(principal.user_id, body.video_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="bookmark already exists")

    bookmark = Bookmark.new(
        user_id=principal.user_id,
        video_id=body.video_id,
        timestamp_seconds=math.floor(body.timestamp_seconds),
        created_at=int(datetime.datetime.now(datetime.UTC).timestamp()),
        note=body.note,
    )
    bookmark_repo.add(bookmark)
    await cache_service.delete_pattern(user_course_cache_pattern(principal.user_id))
    logger.debug("Bookmark created", extra={"video_id": body.video_id})
    return _to_out(bookmark)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bookmark(
    video_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> Response:
    if not bookmark_repo.delete(principal.user_id, video_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="bookmark not found")
    await cache_service.delete_pattern(user_course_cache_pattern(principal.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
