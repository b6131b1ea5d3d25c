from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from coursetrack.models.note import Note


class NoteRepo(Protocol):
    def get(self, note_id: str) -> Note | None: ...
    def find(
        self,
        user_id: str,
        *,
        video_id: str | None = None,
        course_id: str | None = None,
    ) -> list[Note]: ...
    def add(self, note: Note) -> None: ...
    def update_content(self, note_id: str, content: str) -> Note | None: ...
    def delete(self, note_id: str) -> bool: ...


class InMemoryNoteRepo:
    def __init__(self) -> None:
        self._store: dict[str, Note] = {}

    def get(self, note_id: str) -> Note | None:
        return self._store.get(note_id)

    def find(
        self,
        user_id: str,
        *,
        video_id: str | None = None,
        course_id: str | None = None,
    ) -> list[Note]:
        notes = [
            n
            for n in self._store.values()
            if n.user_id == user_id
            and (video_id is None or n.video_id == video_id)
            and (course_id is None or n.course_id == course_id)
        ]
        notes.sort(key=lambda n: (n.course_id, n.video_id, n.timestamp_seconds))
        return notes

    def add(self, note: Note) -> None:
        self._store[note.id] = note

    def update_content(self, note_id: str, content: str) -> Note | None:
        n = self._store.get(note_id)
        if n is None:
            return None
        updated = replace(n, content=content)
        self._store[note_id] = updated
        return updated

    def delete(self, note_id: str) -> bool:
        return self._store.pop(note_id, None) is not None
