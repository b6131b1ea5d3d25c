from __future__ import annotations

import asyncio

from coursetrack.playback.clock import PlaybackClock
from coursetrack.playback.notes import NotesDrawer, NoteView
from tests.playback.fakes import FakeApi, FakePlayer, RecordingNotifier


def _drawer(
    t: float = 0.0,
) -> tuple[NotesDrawer, FakeApi, PlaybackClock, FakePlayer, RecordingNotifier]:
    api = FakeApi()
    clock = PlaybackClock()
    player = FakePlayer(t=t)
    clock.load("v1")
    clock.attach(player)
    clock.sample()
    notifier = RecordingNotifier()
    drawer = NotesDrawer(api, clock, course_id="c1", video_id="v1", notifier=notifier)
    return drawer, api, clock, player, notifier


def test_note_label() -> None:
    assert NoteView(id="n", timestamp_seconds=3725, content="").label == "1:02:05"


def test_add_note_stamps_clock_time_and_keeps_order() -> None:
    async def scenario() -> tuple[NotesDrawer, RecordingNotifier]:
        drawer, _, clock, player, notifier = _drawer(t=90.8)
        await drawer.add_note("late")
        player.t = 12.2
        clock.sample()
        await drawer.add_note("early")
        return drawer, notifier

    drawer, notifier = asyncio.run(scenario())
    assert [(n.timestamp_seconds, n.content) for n in drawer.notes] == [
        (12, "early"),
        (90, "late"),
    ]
    assert not any(n.pending for n in drawer.notes)
    assert notifier.successes == ["Note added", "Note added"]


def test_placeholder_visible_while_saving() -> None:
    async def scenario() -> None:
        drawer, api, _, _, _ = _drawer(t=30)
        api.gate = asyncio.Event()
        task = asyncio.create_task(drawer.add_note("hi"))
        await asyncio.sleep(0)
        (placeholder,) = drawer.notes
        assert placeholder.pending
        api.gate.set()
        await task
        (saved,) = drawer.notes
        assert not saved.pending
        assert saved.id == "note-1"

    asyncio.run(scenario())


def test_failed_add_removes_placeholder() -> None:
    async def scenario() -> tuple[NoteView | None, NotesDrawer, RecordingNotifier]:
        drawer, api, _, _, notifier = _drawer(t=30)
        api.fail.add("create_note")
        return await drawer.add_note("hi"), drawer, notifier

    created, drawer, notifier = asyncio.run(scenario())
    assert created is None
    assert drawer.notes == ()
    assert notifier.errors == ["Failed to add note"]


def test_delete_restores_on_failure() -> None:
    async def scenario() -> tuple[bool, NotesDrawer]:
        drawer, api, _, _, _ = _drawer(t=30)
        note = await drawer.add_note("keep me")
        api.fail.add("delete_note")
        ok = await drawer.delete_note(note.id)
        return ok, drawer

    ok, drawer = asyncio.run(scenario())
    assert not ok
    assert [n.content for n in drawer.notes] == ["keep me"]


def test_edit_and_refresh() -> None:
    async def scenario() -> tuple[tuple[NoteView, ...], tuple[NoteView, ...]]:
        drawer, _, _, _, _ = _drawer(t=5)
        note = await drawer.add_note("draft")
        await drawer.edit_note(note.id, "final")
        edited = drawer.notes
        drawer.switch_video("v2")
        assert drawer.notes == ()
        drawer.switch_video("v1")
        return edited, await drawer.refresh()

    edited, refreshed = asyncio.run(scenario())
    assert [n.content for n in edited] == ["final"]
    assert [n.content for n in refreshed] == ["final"]


def test_jump_to_seeks_clock() -> None:
    drawer, _, clock, player, _ = _drawer(t=0)
    drawer.jump_to(NoteView(id="n", timestamp_seconds=75, content=""))
    assert player.seeks == [75]
    assert clock.get_current_time() == 75


def test_note_saved_after_video_switch_stays_with_its_video() -> None:
    async def scenario() -> tuple[NotesDrawer, FakeApi, RecordingNotifier]:
        drawer, api, _, _, notifier = _drawer(t=30)
        api.gate = asyncio.Event()
        task = asyncio.create_task(drawer.add_note("about v1"))
        await asyncio.sleep(0)
        drawer.switch_video("v2")
        api.gate.set()
        await task
        return drawer, api, notifier

    drawer, api, notifier = asyncio.run(scenario())
    assert drawer.video_id == "v2"
    assert drawer.notes == ()
    assert api.calls_to("create_note") == [((), {"video_id": "v1", "timestamp_seconds": 30})]
    assert notifier.successes == ["Note added"]


def test_failed_save_after_video_switch_is_silent() -> None:
    async def scenario() -> tuple[NotesDrawer, RecordingNotifier]:
        drawer, api, _, _, notifier = _drawer(t=30)
        api.gate = asyncio.Event()
        api.fail.add("create_note")
        task = asyncio.create_task(drawer.add_note("lost"))
        await asyncio.sleep(0)
        drawer.switch_video("v2")
        api.gate.set()
        assert await task is None
        return drawer, notifier

    drawer, notifier = asyncio.run(scenario())
    assert drawer.notes == ()
    assert notifier.errors == []


def test_failed_delete_after_video_switch_does_not_restore() -> None:
    async def scenario() -> tuple[bool, NotesDrawer, RecordingNotifier]:
        drawer, api, _, _, notifier = _drawer(t=30)
        note = await drawer.add_note("old")
        api.gate = asyncio.Event()
        api.fail.add("delete_note")
        task = asyncio.create_task(drawer.delete_note(note.id))
        await asyncio.sleep(0)
        drawer.switch_video("v2")
        api.gate.set()
        return await task, drawer, notifier

    ok, drawer, notifier = asyncio.run(scenario())
    assert not ok
    assert drawer.notes == ()
    assert notifier.errors == []
