from __future__ import annotations

from typing import Protocol

from coursetrack.models.bookmark import Bookmark


class BookmarkRepo(Protocol):
    def get(self, user_id: str, video_id: str) -> Bookmark | None: ...
    def list_for_user(self, user_id: str) -> list[Bookmark]: ...
    def add(self, bookmark: Bookmark) -> None: ...
    def delete(self, user_id: str, video_id: str) -> bool: ...


class InMemoryBookmarkRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Bookmark] = {}

    def get(self, user_id: str, video_id: str) -> Bookmark | None:
        return self._store.get((user_id, video_id))

    def list_for_user(self, user_id: str) -> list[Bookmark]:
        return sorted(
            (b for (uid, _), b in self._store.items() if uid == user_id),
            key=lambda b: b.created_at,
            reverse=True,
        )

    def add(self, bookmark: Bookmark) -> None:
        key = (bookmark.user_id, bookmark.video_id)
        if key in self._store:
            raise ValueError("bookmark already exists")
        self._store[key] = bookmark

    def delete(self, user_id: str, video_id: str) -> bool:
        return self._store.pop((user_id, video_id), None) is not None
