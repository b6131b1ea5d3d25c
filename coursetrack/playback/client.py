"""HTTP client for the coursetrack API.

The playback core depends on the narrow protocols below rather than on
``CourseTrackClient`` itself, so tests can hand it in-memory fakes and
the client can be pointed at the ASGI app without a network.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from coursetrack.core.config import SETTINGS

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}")
        self.status_code = status_code
        self.detail = detail


# Failures the playback core recovers from locally.  Anything else is a
# bug and propagates.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (ApiError, httpx.HTTPError)


class ProgressApi(Protocol):
    async def save_video_progress(
        self,
        video_id: str,
        *,
        completed: bool | None = None,
        last_watched_seconds: int | None = None,
    ) -> dict[str, Any]: ...

    async def complete_chapter(self, chapter_id: str) -> dict[str, Any]: ...


class BookmarkApi(Protocol):
    async def create_bookmark(
        self, video_id: str, *, timestamp_seconds: int, note: str | None = None
    ) -> dict[str, Any]: ...

    async def delete_bookmark(self, video_id: str) -> None: ...


class NotesApi(Protocol):
    async def list_notes(
        self, *, video_id: str | None = None, course_id: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def create_note(
        self, *, course_id: str, video_id: str, timestamp_seconds: int, content: str
    ) -> dict[str, Any]: ...

    async def update_note(self, note_id: str, content: str) -> dict[str, Any]: ...

    async def delete_note(self, note_id: str) -> None: ...


class CourseTrackClient:
    """Async client for ``/v1``.  Use as an async context manager or call
    ``aclose`` when done."""

    def __init__(
        self,
        *,
        base_url: str = SETTINGS.api_base_url,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url, headers=headers, transport=transport, timeout=timeout
        )

    async def __aenter__(self) -> CourseTrackClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._http.request(method, path, **kwargs)
        if response.is_error:
            logger.debug("%s %s → %d", method, path, response.status_code)
            raise ApiError(response.status_code, _detail(response))
        if not response.content:
            return None
        return response.json()

    # -- courses -------------------------------------------------------------

    async def get_course(self, course_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v1/courses/{course_id}")

    # -- progress ------------------------------------------------------------

    async def save_video_progress(
        self,
        video_id: str,
        *,
        completed: bool | None = None,
        last_watched_seconds: int | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if completed is not None:
            body["completed"] = completed
        if last_watched_seconds is not None:
            body["lastWatchedSeconds"] = last_watched_seconds
        return await self._request("POST", f"/v1/progress/video/{video_id}", json=body)

    async def complete_chapter(self, chapter_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/v1/progress/chapter/{chapter_id}")

    async def get_streak(self) -> dict[str, Any]:
        return await self._request("GET", "/v1/user/streak")

    async def list_activity(self, *, year: int | None = None) -> list[dict[str, Any]]:
        params = {"year": year} if year is not None else None
        return await self._request("GET", "/v1/activity", params=params)

    # -- bookmarks -----------------------------------------------------------

    async def list_bookmarks(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/v1/bookmarks")

    async def create_bookmark(
        self, video_id: str, *, timestamp_seconds: int, note: str | None = None
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"videoId": video_id, "timestampSeconds": timestamp_seconds}
        if note is not None:
            body["note"] = note
        return await self._request("POST", "/v1/bookmarks", json=body)

    async def delete_bookmark(self, video_id: str) -> None:
        await self._request("DELETE", f"/v1/bookmarks/{video_id}")

    # -- notes ---------------------------------------------------------------

    async def list_notes(
        self, *, video_id: str | None = None, course_id: str | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, str] = {}
        if video_id is not None:
            params["videoId"] = video_id
        if course_id is not None:
            params["courseId"] = course_id
        if not params:
            params["all"] = "true"
        return await self._request("GET", "/v1/notes", params=params)

    async def create_note(
        self, *, course_id: str, video_id: str, timestamp_seconds: int, content: str
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/v1/notes",
            json={
                "courseId": course_id,
                "videoId": video_id,
                "timestampSeconds": timestamp_seconds,
                "content": content,
            },
        )

    async def update_note(self, note_id: str, content: str) -> dict[str, Any]:
        return await self._request("PATCH", f"/v1/notes/{note_id}", json={"content": content})

    async def delete_note(self, note_id: str) -> None:
        await self._request("DELETE", f"/v1/notes/{note_id}")


def _detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return response.text
