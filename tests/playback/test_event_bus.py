from __future__ import annotations

import logging

import pytest

from coursetrack.playback.events import (
    BookmarkUpdate,
    ChapterIndexChange,
    EventBus,
    Subscriptions,
    VideoIndexChange,
)


def test_delivery_in_registration_order() -> None:
    bus = EventBus()
    seen: list[str] = []
    bus.subscribe(VideoIndexChange, lambda e: seen.append(f"a{e.video_index}"))
    bus.subscribe(VideoIndexChange, lambda e: seen.append(f"b{e.video_index}"))

    bus.publish(VideoIndexChange(video_index=2))

    assert seen == ["a2", "b2"]


def test_events_are_routed_by_type() -> None:
    bus = EventBus()
    seen: list[object] = []
    bus.subscribe(BookmarkUpdate, seen.append)

    bus.publish(VideoIndexChange(video_index=0))
    bus.publish(BookmarkUpdate(video_id="v1", bookmarked=True))

    assert seen == [BookmarkUpdate(video_id="v1", bookmarked=True)]


def test_no_replay_for_late_subscribers() -> None:
    bus = EventBus()
    bus.publish(VideoIndexChange(video_index=1))
    seen: list[object] = []
    bus.subscribe(VideoIndexChange, seen.append)
    assert seen == []


def test_listener_added_during_delivery_waits_for_next_event() -> None:
    bus = EventBus()
    late: list[object] = []

    def first(event: VideoIndexChange) -> None:
        bus.subscribe(VideoIndexChange, late.append)

    bus.subscribe(VideoIndexChange, first)
    bus.publish(VideoIndexChange(video_index=1))
    assert late == []

    bus.publish(VideoIndexChange(video_index=2))
    assert late == [VideoIndexChange(video_index=2)]


def test_listener_removed_during_delivery_is_skipped() -> None:
    bus = EventBus()
    seen: list[str] = []
    unsubscribe_b = None

    def a(event: VideoIndexChange) -> None:
        seen.append("a")
        unsubscribe_b()

    bus.subscribe(VideoIndexChange, a)
    unsubscribe_b = bus.subscribe(VideoIndexChange, lambda e: seen.append("b"))

    bus.publish(VideoIndexChange(video_index=0))
    assert seen == ["a"]


def test_unsubscribe_is_idempotent() -> None:
    bus = EventBus()
    unsubscribe = bus.subscribe(VideoIndexChange, lambda e: None)
    unsubscribe()
    unsubscribe()
    assert bus.listener_count(VideoIndexChange) == 0


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    seen: list[int] = []

    def broken(event: ChapterIndexChange) -> None:
        raise RuntimeError("boom")

    bus.subscribe(ChapterIndexChange, broken)
    bus.subscribe(ChapterIndexChange, lambda e: seen.append(e.chapter_index))

    with caplog.at_level(logging.ERROR, logger="coursetrack.playback.events"):
        bus.publish(ChapterIndexChange(chapter_index=3))

    assert seen == [3]
    assert "chapterIndexChange" in caplog.text


def test_subscriptions_close_removes_everything() -> None:
    bus = EventBus()
    subs = Subscriptions(bus)
    subs.on(VideoIndexChange, lambda e: None)
    subs.on(BookmarkUpdate, lambda e: None)
    assert len(subs) == 2
    assert bus.listener_count() == 2

    subs.close()

    assert len(subs) == 0
    assert bus.listener_count() == 0
