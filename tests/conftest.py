from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from coursetrack.api.stores import bookmark_repo, note_repo, progress_repo
from coursetrack.main import app
from coursetrack.services import token_service
from coursetrack.services.cache import cache_service

# Ensure repo root is on sys.path so `import coursetrack` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_progress_state() -> None:
    """Clear video/chapter progress and activity between tests."""
    progress_repo.clear()


@pytest.fixture(autouse=True)
def reset_bookmarks_and_notes() -> None:
    bookmark_repo._store.clear()
    note_repo._store.clear()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


@pytest.fixture
def token() -> str:
    return mint_token()


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
