"""Notes drawer: timestamped moments for the video on screen."""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass, replace
from typing import Any
from uuid import uuid4

from coursetrack.playback.client import TRANSIENT_ERRORS, NotesApi
from coursetrack.playback.clock import PlaybackClock, format_timestamp
from coursetrack.playback.toggles import Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NoteView:
    id: str
    timestamp_seconds: int
    content: str
    pending: bool = False

    @property
    def label(self) -> str:
        return format_timestamp(self.timestamp_seconds)

    @staticmethod
    def from_api(payload: dict[str, Any]) -> NoteView:
        return NoteView(
            id=payload["id"],
            timestamp_seconds=int(payload["timestampSeconds"]),
            content=payload.get("content", ""),
        )


class NotesDrawer:
    """Keeps the drawer's list sorted by timestamp.

    New notes are stamped from the clock and shown immediately; the
    placeholder is swapped for the server's record or removed again if
    the save fails.  A response that arrives after the drawer moved to
    another video leaves the new video's list alone.
    """

    def __init__(
        self,
        api: NotesApi,
        clock: PlaybackClock,
        *,
        course_id: str,
        video_id: str,
        notifier: Notifier,
    ) -> None:
        self._api = api
        self._clock = clock
        self._notifier = notifier
        self.course_id = course_id
        self.video_id = video_id
        self._notes: list[NoteView] = []

    @property
    def notes(self) -> tuple[NoteView, ...]:
        return tuple(self._notes)

    def switch_video(self, video_id: str) -> None:
        self.video_id = video_id
        self._notes = []

    async def refresh(self) -> tuple[NoteView, ...]:
        video_id = self.video_id
        try:
            payload = await self._api.list_notes(video_id=video_id)
        except TRANSIENT_ERRORS as e:
            logger.warning("Loading notes failed: %s", e, extra={"video_id": video_id})
            self._notifier.error("Failed to load notes")
            return self.notes
        if video_id != self.video_id:
            # video changed while loading
            return self.notes
        self._notes = sorted(
            (NoteView.from_api(n) for n in payload), key=lambda n: n.timestamp_seconds
        )
        return self.notes

    async def add_note(self, content: str = "") -> NoteView | None:
        video_id = self.video_id
        t = self._clock.get_current_time()
        timestamp = math.floor(t) if math.isfinite(t) and t > 0 else 0
        placeholder = NoteView(
            id=f"pending-{uuid4()}", timestamp_seconds=timestamp, content=content, pending=True
        )
        self._insert(placeholder)

        try:
            payload = await self._api.create_note(
                course_id=self.course_id,
                video_id=video_id,
                timestamp_seconds=timestamp,
                content=content,
            )
        except TRANSIENT_ERRORS as e:
            logger.warning("Saving note failed: %s", e, extra={"video_id": video_id})
            if video_id == self.video_id:
                self._remove(placeholder.id)
                self._notifier.error("Failed to add note")
            return None

        created = NoteView.from_api(payload)
        if video_id == self.video_id:
            self._remove(placeholder.id)
            self._insert(created)
        self._notifier.success("Note added")
        return created

    async def edit_note(self, note_id: str, content: str) -> bool:
        video_id = self.video_id
        try:
            payload = await self._api.update_note(note_id, content)
        except TRANSIENT_ERRORS as e:
            logger.warning("Updating note %s failed: %s", note_id, e, extra={"video_id": video_id})
            if video_id == self.video_id:
                self._notifier.error("Failed to update note")
            return False
        if video_id != self.video_id:
            return True
        updated = NoteView.from_api(payload)
        self._notes = [
            replace(n, content=updated.content) if n.id == note_id else n for n in self._notes
        ]
        return True

    async def delete_note(self, note_id: str) -> bool:
        video_id = self.video_id
        removed = self._remove(note_id)
        try:
            await self._api.delete_note(note_id)
        except TRANSIENT_ERRORS as e:
            logger.warning("Deleting note %s failed: %s", note_id, e, extra={"video_id": video_id})
            if video_id != self.video_id:
                return False
            if removed is not None:
                self._insert(removed)
            self._notifier.error("Failed to delete note")
            return False
        return True

    def jump_to(self, note: NoteView) -> None:
        self._clock.seek_to(note.timestamp_seconds)

    def _insert(self, note: NoteView) -> None:
        keys = [n.timestamp_seconds for n in self._notes]
        self._notes.insert(bisect.bisect_right(keys, note.timestamp_seconds), note)

    def _remove(self, note_id: str) -> NoteView | None:
        for i, n in enumerate(self._notes):
            if n.id == note_id:
                return self._notes.pop(i)
        return None
