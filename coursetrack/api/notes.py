"""Timestamped notes ("moments") on videos."""

from __future__ import annotations

import datetime
import logging
import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import Field, field_validator

from coursetrack.api.dependencies import require_user
from coursetrack.api.schemas import CamelModel
from coursetrack.api.stores import catalog_repo, note_repo
from coursetrack.models.note import Note
from coursetrack.models.principal import Principal
from coursetrack.services.moments import (
    MOMENT_MAX_EFFECTIVE_CHARS,
    NOTE_EDIT_MAX_CHARS,
    effective_moment_length,
    normalize_edited_content,
    normalize_moment_content,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/notes", tags=["notes"])


class NoteIn(CamelModel):
    course_id: str
    video_id: str
    timestamp_seconds: float = Field(ge=0)
    content: str = ""

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str) -> str:
        value = normalize_moment_content(value)
        if effective_moment_length(value) > MOMENT_MAX_EFFECTIVE_CHARS:
            raise ValueError(
                f"Moment note must be at most {MOMENT_MAX_EFFECTIVE_CHARS} characters "
                "(new lines consume more)"
            )
        return value


class NotePatch(CamelModel):
    content: str = Field(max_length=NOTE_EDIT_MAX_CHARS)

    @field_validator("content")
    @classmethod
    def _flatten(cls, value: str) -> str:
        return normalize_edited_content(value)


class NoteOut(CamelModel):
    id: str
    course_id: str
    video_id: str
    timestamp_seconds: int
    content: str
    created_at: int


def _to_out(note: Note) -> NoteOut:
    return NoteOut(
        id=note.id,
        course_id=note.course_id,
        video_id=note.video_id,
        timestamp_seconds=note.timestamp_seconds,
        content=note.content,
        created_at=note.created_at,
    )


def _owned_note(note_id: str, principal: Principal) -> Note:
    note = note_repo.get(note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="note not found")
    if note.user_id != principal.user_id:
        logger.warning("Note access denied: user=%s note=%s", principal.user_id, note_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return note


@router.get("", response_model=list[NoteOut])
def list_notes(
    principal: Annotated[Principal, Depends(require_user)],
    video_id: Annotated[str | None, Query(alias="videoId")] = None,
    course_id: Annotated[str | None, Query(alias="courseId")] = None,
    all_notes: Annotated[bool, Query(alias="all")] = False,
) -> list[NoteOut]:
    if video_id is None and course_id is None and not all_notes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="videoId or courseId is required",
        )
    notes = note_repo.find(principal.user_id, video_id=video_id, course_id=course_id)
    return [_to_out(n) for n in notes]


@router.post("", response_model=NoteOut, status_code=status.HTTP_201_CREATED)
def create_note(
    body: NoteIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> NoteOut:
    video = catalog_repo.get_video(body.video_id)
    if video is None or video.course_id != body.course_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="video not found")

    note = Note.new(
        user_id=principal.user_id,
        course_id=body.course_id,
        video_id=body.video_id,
        timestamp_seconds=math.floor(body.timestamp_seconds),
        content=body.content,
        created_at=int(datetime.datetime.now(datetime.UTC).timestamp()),
    )
    note_repo.add(note)
    return _to_out(note)


@router.patch("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: str,
    body: NotePatch,
    principal: Annotated[Principal, Depends(require_user)],
) -> NoteOut:
    _owned_note(note_id, principal)
    updated = note_repo.update_content(note_id, body.content)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="note not found")
    return _to_out(updated)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> Response:
    _owned_note(note_id, principal)
    note_repo.delete(note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
