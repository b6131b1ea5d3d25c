from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Bookmark:
    id: str
    user_id: str
    video_id: str
    timestamp_seconds: int
    created_at: int
    note: str | None = None

    @staticmethod
    def new(
        *,
        user_id: str,
        video_id: str,
        timestamp_seconds: int,
        created_at: int,
        note: str | None = None,
    ) -> Bookmark:
        return Bookmark(
            id=str(uuid4()),
            user_id=user_id,
            video_id=video_id,
            timestamp_seconds=timestamp_seconds,
            created_at=created_at,
            note=note,
        )
