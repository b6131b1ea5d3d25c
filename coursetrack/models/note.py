from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Note:
    """A timestamp-anchored "moment" on a video."""

    id: str
    user_id: str
    course_id: str
    video_id: str
    timestamp_seconds: int
    content: str
    created_at: int

    @staticmethod
    def new(
        *,
        user_id: str,
        course_id: str,
        video_id: str,
        timestamp_seconds: int,
        content: str,
        created_at: int,
    ) -> Note:
        return Note(
            id=str(uuid4()),
            user_id=user_id,
            course_id=course_id,
            video_id=video_id,
            timestamp_seconds=timestamp_seconds,
            content=content,
            created_at=created_at,
        )
