"""Process-wide in-memory stores shared by the routers.

Progress is written by /v1/progress and read back by the course
snapshot and the streak endpoint, so the repos live here rather than
in any single router module.
"""

from __future__ import annotations

from coursetrack.repos.bookmark_repo import InMemoryBookmarkRepo
from coursetrack.repos.catalog_repo import InMemoryCatalogRepo
from coursetrack.repos.note_repo import InMemoryNoteRepo
from coursetrack.repos.progress_repo import InMemoryProgressRepo

catalog_repo = InMemoryCatalogRepo()
progress_repo = InMemoryProgressRepo()
bookmark_repo = InMemoryBookmarkRepo()
note_repo = InMemoryNoteRepo()


def course_cache_key(user_id: str, course_id: str) -> str:
    return f"course:{user_id}:{course_id}"


def user_course_cache_pattern(user_id: str) -> str:
    return f"course:{user_id}:*"
