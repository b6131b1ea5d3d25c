"""Video and chapter progress endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from coursetrack.api.stores import progress_repo
from tests.conftest import auth

# ---- 401 ----


def test_progress_rejects_missing_token(client: TestClient) -> None:
    resp = client.post("/v1/progress/video/stats-110-v1", json={"completed": True})
    assert resp.status_code == 401


def test_progress_rejects_garbage_token(client: TestClient) -> None:
    resp = client.post(
        "/v1/progress/video/stats-110-v1",
        json={"completed": True},
        headers=auth("not-a-jwt"),
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_progress_rejects_non_bearer_scheme(client: TestClient) -> None:
    resp = client.post(
        "/v1/progress/video/stats-110-v1",
        json={"completed": True},
        headers={"Authorization": "Basic dXNlcjpwYXNz"},
    )
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_openapi_declares_plain_bearer_auth(client: TestClient) -> None:
    schemes = client.get("/openapi.json").json()["components"]["securitySchemes"]
    assert schemes == {"HTTPBearer": {"type": "http", "scheme": "bearer"}}


# ---- video progress ----


def test_save_position(client: TestClient, token: str) -> None:
    resp = client.post(
        "/v1/progress/video/stats-110-v1",
        json={"lastWatchedSeconds": 125},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "videoId": "stats-110-v1",
        "completed": False,
        "lastWatchedSeconds": 125,
    }


def test_repeated_writes_upsert_one_record(client: TestClient, token: str) -> None:
    for seconds in (10, 15, 20):
        client.post(
            "/v1/progress/video/stats-110-v1",
            json={"lastWatchedSeconds": seconds},
            headers=auth(token),
        )
    assert progress_repo.count_videos("test-user") == 1
    assert progress_repo.get_video("test-user", "stats-110-v1").last_watched_seconds == 20


def test_position_write_keeps_completion(client: TestClient, token: str) -> None:
    url = "/v1/progress/video/stats-110-v1"
    client.post(url, json={"completed": True}, headers=auth(token))
    resp = client.post(url, json={"lastWatchedSeconds": 30}, headers=auth(token))
    assert resp.json()["completed"] is True
    assert resp.json()["lastWatchedSeconds"] == 30


def test_empty_body_is_400(client: TestClient, token: str) -> None:
    resp = client.post("/v1/progress/video/stats-110-v1", json={}, headers=auth(token))
    assert resp.status_code == 400


def test_negative_position_is_422(client: TestClient, token: str) -> None:
    resp = client.post(
        "/v1/progress/video/stats-110-v1",
        json={"lastWatchedSeconds": -1},
        headers=auth(token),
    )
    assert resp.status_code == 422


def test_infinite_position_is_422_and_keeps_stored_one(client: TestClient, token: str) -> None:
    url = "/v1/progress/video/stats-110-v1"
    client.post(url, json={"lastWatchedSeconds": 120}, headers=auth(token))
    for raw in ("Infinity", "-Infinity", "NaN"):
        resp = client.post(
            url,
            content=f'{{"lastWatchedSeconds": {raw}}}',
            headers={**auth(token), "Content-Type": "application/json"},
        )
        assert resp.status_code == 422, raw
    assert progress_repo.get_video("test-user", "stats-110-v1").last_watched_seconds == 120


def test_unknown_video_is_404(client: TestClient, token: str) -> None:
    resp = client.post(
        "/v1/progress/video/missing", json={"completed": True}, headers=auth(token)
    )
    assert resp.status_code == 404


def test_completion_records_activity_once_per_day(client: TestClient, token: str) -> None:
    client.post(
        "/v1/progress/video/stats-110-v1", json={"completed": True}, headers=auth(token)
    )
    client.post(
        "/v1/progress/video/stats-110-v2", json={"completed": True}, headers=auth(token)
    )
    assert len(progress_repo.list_activity("test-user")) == 1


def test_position_write_records_no_activity(client: TestClient, token: str) -> None:
    client.post(
        "/v1/progress/video/stats-110-v1",
        json={"lastWatchedSeconds": 12},
        headers=auth(token),
    )
    assert progress_repo.list_activity("test-user") == []


# ---- chapter progress ----


def test_complete_chapter(client: TestClient, token: str) -> None:
    resp = client.post("/v1/progress/chapter/deep-dive-v1-ch0", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["chapterId"] == "deep-dive-v1-ch0"
    assert body["completed"] is True
    assert body["completedAt"] is not None


def test_complete_chapter_twice_is_idempotent(client: TestClient, token: str) -> None:
    url = "/v1/progress/chapter/deep-dive-v1-ch0"
    assert client.post(url, headers=auth(token)).status_code == 200
    assert client.post(url, headers=auth(token)).status_code == 200
    assert progress_repo.get_chapter("test-user", "deep-dive-v1-ch0").completed


def test_unknown_chapter_is_404(client: TestClient, token: str) -> None:
    resp = client.post("/v1/progress/chapter/nope", headers=auth(token))
    assert resp.status_code == 404
