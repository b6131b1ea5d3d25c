from __future__ import annotations

from typing import Protocol

from coursetrack.models.course import Chapter, Course, Video


class CatalogRepo(Protocol):
    def list_courses(self) -> list[Course]: ...
    def get_course(self, course_id: str) -> Course | None: ...
    def get_video(self, video_id: str) -> Video | None: ...
    def get_chapter(self, chapter_id: str) -> Chapter | None: ...
    def add(self, course: Course) -> None: ...


class InMemoryCatalogRepo:
    """Read-mostly course catalog.

    Courses arrive fully assembled (videos with their chapters); the
    video and chapter indexes are rebuilt from the course on ``add``.
    """

    def __init__(self) -> None:
        self._courses: dict[str, Course] = {}
        self._videos: dict[str, Video] = {}
        self._chapters: dict[str, Chapter] = {}

    def list_courses(self) -> list[Course]:
        return list(self._courses.values())

    def get_course(self, course_id: str) -> Course | None:
        return self._courses.get(course_id)

    def get_video(self, video_id: str) -> Video | None:
        return self._videos.get(video_id)

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        return self._chapters.get(chapter_id)

    def add(self, course: Course) -> None:
        if course.id in self._courses:
            raise ValueError("course already exists")
        self._courses[course.id] = course
        for video in course.videos:
            self._videos[video.id] = video
            for chapter in video.chapters:
                self._chapters[chapter.id] = chapter
