"""Demo: drive a chaptered course through CoursePlayerSession in-process.

The API runs inside this process behind httpx.ASGITransport; a scripted
player stands in for the embedded video.

Run with:
    python scripts/demo_player_session.py
"""

from __future__ import annotations

import asyncio

import httpx

from coursetrack.main import app
from coursetrack.playback.client import CourseTrackClient
from coursetrack.playback.clock import PlayerState
from coursetrack.playback.snapshot import CourseSnapshot
from coursetrack.playback.session import CoursePlayerSession
from coursetrack.services import token_service

COURSE_ID = "deep-dive"


class ScriptedPlayer:
    def __init__(self) -> None:
        self.t = 0.0

    def get_current_time(self) -> float:
        return self.t

    def seek_to(self, seconds: float) -> None:
        self.t = seconds

    def play(self) -> None:
        pass


async def main() -> None:
    token = token_service.create_access_token(sub="demo-user")
    async with CourseTrackClient(
        base_url="http://demo",
        token=token,
        transport=httpx.ASGITransport(app=app),
    ) as api:
        course = CourseSnapshot.from_api(await api.get_course(COURSE_ID))
        print(f"1. Loaded {course.title!r}: {len(course.videos[0].chapters)} chapters")

        session = CoursePlayerSession(course, api)
        player = ScriptedPlayer()
        session.attach_player(player)
        session.on_player_state(PlayerState.PLAYING)

        # ── Play into the second chapter ────────────────────────────────
        player.t = 75.4
        session.clock.sample()
        print(f"2. t=75.4s                 → {session.position_label}")

        # ── Skip ahead: the stale reading is ignored ────────────────────
        session.next()
        player.t = 75.4
        session.clock.sample()
        print(f"3. next() + stale sample   → {session.position_label}")

        # ── Bookmark, add a note, pause ─────────────────────────────────
        await session.toggle_bookmark()
        await session.notes.add_note("Linearity of expectation")
        session.on_player_state(PlayerState.PAUSED)
        await session.close()

        snapshot = await api.get_course(COURSE_ID)
        video = snapshot["videos"][0]
        done = [c["title"] for c in video["chapters"] if c["completed"]]
        print(f"4. Resume at {video['lastWatchedSeconds']}s, bookmarked={video['bookmarked']}")
        print(f"5. Completed chapters: {done}")
        notes = await api.list_notes(video_id=video["id"])
        print(f"6. Notes: {[(n['timestampSeconds'], n['content']) for n in notes]}")


if __name__ == "__main__":
    asyncio.run(main())
