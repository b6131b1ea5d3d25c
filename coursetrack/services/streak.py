"""Daily activity streaks.

A day counts once the user completes at least one video on it.  The
current streak is anchored on today, or on yesterday when today has no
activity yet, so an unbroken run doesn't read as zero before the
user's first completion of the day.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True, slots=True)
class Streak:
    current: int
    longest: int


def compute_streak(days: Iterable[date], today: date) -> Streak:
    active = set(days)
    if not active:
        return Streak(current=0, longest=0)

    if today in active:
        cursor = today
    elif today - timedelta(days=1) in active:
        cursor = today - timedelta(days=1)
    else:
        cursor = None

    current = 0
    while cursor is not None and cursor in active:
        current += 1
        cursor -= timedelta(days=1)

    longest = 0
    run = 0
    previous: date | None = None
    for day in sorted(active):
        run = run + 1 if previous is not None and (day - previous).days == 1 else 1
        longest = max(longest, run)
        previous = day

    return Streak(current=current, longest=longest)
