from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from coursetrack.api.dependencies import require_user
from coursetrack.api.schemas import CamelModel
from coursetrack.api.stores import progress_repo
from coursetrack.models.principal import Principal
from coursetrack.services.streak import compute_streak

router = APIRouter(prefix="/v1", tags=["activity"])

# Without ?year= the activity history covers the trailing year.
_DEFAULT_WINDOW = datetime.timedelta(days=365)


class StreakOut(CamelModel):
    current_streak: int
    longest_streak: int
    active_days: list[str]


class ActivityOut(CamelModel):
    date: str
    completed: bool


def _today() -> datetime.date:
    return datetime.datetime.now(datetime.UTC).date()


@router.get("/user/streak", response_model=StreakOut)
def get_streak(
    principal: Annotated[Principal, Depends(require_user)],
) -> StreakOut:
    activity = progress_repo.list_activity(principal.user_id)
    days = [datetime.date.fromisoformat(a.date) for a in activity if a.completed]
    streak = compute_streak(days, _today())
    return StreakOut(
        current_streak=streak.current,
        longest_streak=streak.longest,
        active_days=[a.date for a in activity],
    )


@router.get("/activity", response_model=list[ActivityOut])
def list_activity(
    principal: Annotated[Principal, Depends(require_user)],
    year: Annotated[int | None, Query(ge=1970, le=9999)] = None,
) -> list[ActivityOut]:
    """Active days for the heatmap, oldest first."""
    if year is not None:
        start, end = datetime.date(year, 1, 1), datetime.date(year, 12, 31)
    else:
        end = _today()
        start = end - _DEFAULT_WINDOW

    first, last = start.isoformat(), end.isoformat()
    return [
        ActivityOut(date=a.date, completed=a.completed)
        for a in reversed(progress_repo.list_activity(principal.user_id))
        if first <= a.date <= last
    ]
