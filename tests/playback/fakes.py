"""In-memory stand-ins for the player and the API used by playback tests."""

from __future__ import annotations

import asyncio
from typing import Any

from coursetrack.playback.client import ApiError


class FakePlayer:
    def __init__(self, t: float = 0.0) -> None:
        self.t = t
        self.seeks: list[float] = []
        self.plays = 0

    def get_current_time(self) -> float:
        return self.t

    def seek_to(self, seconds: float) -> None:
        self.seeks.append(seconds)
        self.t = seconds

    def play(self) -> None:
        self.plays += 1


class FakeClock:
    """Time source and seeker for components tested without a real clock."""

    def __init__(self, t: float = 0.0) -> None:
        self.t = t
        self.seeks: list[float] = []

    def get_current_time(self) -> float:
        return self.t

    def seek_to(self, seconds: float) -> None:
        self.seeks.append(seconds)
        self.t = seconds


class RecordingNotifier:
    def __init__(self) -> None:
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class ManualMonotonic:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeApi:
    """Records calls; ``fail`` names methods that raise ApiError(503).

    Setting ``gate`` makes every call wait on it, so tests can hold
    requests in flight and release them in a chosen order.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple, dict]] = []
        self.fail: set[str] = set()
        self.gate: asyncio.Event | None = None
        self._notes: dict[str, dict[str, Any]] = {}
        self._next_note = 0

    async def _call(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))
        if self.gate is not None:
            await self.gate.wait()
        if name in self.fail:
            raise ApiError(503, f"{name} unavailable")

    def calls_to(self, name: str) -> list[tuple[tuple, dict]]:
        return [(a, k) for n, a, k in self.calls if n == name]

    async def save_video_progress(
        self,
        video_id: str,
        *,
        completed: bool | None = None,
        last_watched_seconds: int | None = None,
    ) -> dict[str, Any]:
        await self._call(
            "save_video_progress",
            video_id,
            completed=completed,
            last_watched_seconds=last_watched_seconds,
        )
        return {"videoId": video_id}

    async def complete_chapter(self, chapter_id: str) -> dict[str, Any]:
        await self._call("complete_chapter", chapter_id)
        return {"chapterId": chapter_id, "completed": True}

    async def create_bookmark(
        self, video_id: str, *, timestamp_seconds: int, note: str | None = None
    ) -> dict[str, Any]:
        await self._call("create_bookmark", video_id, timestamp_seconds=timestamp_seconds)
        return {"videoId": video_id, "timestampSeconds": timestamp_seconds}

    async def delete_bookmark(self, video_id: str) -> None:
        await self._call("delete_bookmark", video_id)

    async def list_notes(
        self, *, video_id: str | None = None, course_id: str | None = None
    ) -> list[dict[str, Any]]:
        await self._call("list_notes", video_id=video_id)
        return [n for n in self._notes.values() if n["videoId"] == video_id]

    async def create_note(
        self, *, course_id: str, video_id: str, timestamp_seconds: int, content: str
    ) -> dict[str, Any]:
        await self._call("create_note", video_id=video_id, timestamp_seconds=timestamp_seconds)
        self._next_note += 1
        note = {
            "id": f"note-{self._next_note}",
            "courseId": course_id,
            "videoId": video_id,
            "timestampSeconds": timestamp_seconds,
            "content": content,
        }
        self._notes[note["id"]] = note
        return note

    async def update_note(self, note_id: str, content: str) -> dict[str, Any]:
        await self._call("update_note", note_id)
        self._notes[note_id] = {**self._notes[note_id], "content": content}
        return self._notes[note_id]

    async def delete_note(self, note_id: str) -> None:
        await self._call("delete_note", note_id)
        self._notes.pop(note_id, None)
