from __future__ import annotations

from coursetrack.playback.events import (
    BookmarkUpdate,
    ChapterIndexChange,
    ChapterProgressUpdate,
    EventBus,
    VideoIndexChange,
    VideoProgressUpdate,
)
from coursetrack.playback.panels import ChapterSheetPanel, SidebarPanel
from coursetrack.playback.snapshot import CourseSnapshot

_PLAYLIST = {
    "id": "c1",
    "title": "Playlist",
    "completionPercentage": 25,
    "videos": [
        {
            "id": f"v{i}",
            "youtubeId": f"yt{i}",
            "title": f"V{i}",
            "position": i,
            "completed": i == 0,
            "bookmarked": i == 1,
            "lastWatchedSeconds": 0,
            "chapters": [],
        }
        for i in range(4)
    ],
}

_CHAPTERED = {
    "id": "c2",
    "title": "Single",
    "videos": [
        {
            "id": "v1",
            "youtubeId": "yt1",
            "title": "Only",
            "position": 0,
            "chapters": [
                {
                    "id": "a",
                    "title": "Intro",
                    "startSeconds": 0,
                    "endSeconds": 60,
                    "order": 0,
                    "completed": True,
                },
                {
                    "id": "b",
                    "title": "Body",
                    "startSeconds": 60,
                    "endSeconds": 3700,
                    "order": 1,
                    "completed": False,
                },
            ],
        }
    ],
}


def test_snapshot_from_api() -> None:
    course = CourseSnapshot.from_api(_CHAPTERED)
    assert course.is_single_video_chapter_course
    assert course.completed_chapter_ids == {"a"}
    assert [c.title for c in course.videos[0].chapters] == ["Intro", "Body"]

    playlist = CourseSnapshot.from_api(_PLAYLIST)
    assert not playlist.is_single_video_chapter_course
    assert playlist.completed_video_ids == {"v0"}
    assert playlist.bookmarked_video_ids == {"v1"}


def test_sidebar_follows_bus() -> None:
    bus = EventBus()
    sidebar = SidebarPanel(CourseSnapshot.from_api(_PLAYLIST), bus)
    assert sidebar.completion_percentage == 25

    bus.publish(VideoProgressUpdate(video_id="v2", completed=True))
    bus.publish(BookmarkUpdate(video_id="v1", bookmarked=False))
    sidebar.select_video(3)

    assert sidebar.completed == {"v0", "v2"}
    assert sidebar.completion_percentage == 50
    assert sidebar.bookmarked == set()
    assert sidebar.video_index == 3

    sidebar.close()
    bus.publish(VideoIndexChange(video_index=0))
    assert sidebar.video_index == 3


def test_chapter_sheet_rows_and_selection() -> None:
    bus = EventBus()
    sheet = ChapterSheetPanel(CourseSnapshot.from_api(_CHAPTERED), bus)
    heard: list[ChapterIndexChange] = []
    bus.subscribe(ChapterIndexChange, heard.append)

    assert sheet.rows() == [("0:00", "Intro", True, True), ("1:00", "Body", False, False)]

    sheet.select_chapter(1)
    bus.publish(ChapterProgressUpdate(chapter_id="b", completed=True))

    assert heard == [ChapterIndexChange(chapter_index=1, source="user")]
    assert sheet.rows() == [("0:00", "Intro", False, True), ("1:00", "Body", True, True)]
