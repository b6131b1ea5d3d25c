"""Chapter extraction from video descriptions.

Creators list chapters as timestamped lines ("0:00 Intro",
"01:02:03 - Wrap up", several per line separated by "|").  The parsed
list is sanitized here, at ingestion, so the playback resolver can
assume strictly increasing starts and non-overlapping ranges.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_SEPARATORS = r"\]\)\-–—•|:"
_LINE_RE = re.compile(
    rf"^\s*(?:[-*•]\s*)?((?:\d{{1,2}}:)?\d{{1,2}}:\d{{2}})\s*([{_SEPARATORS}]+\s*)?(.+)?$"
)
_LEADING_SEPARATORS_RE = re.compile(rf"^[{_SEPARATORS}]+\s*")
_PART_RE = re.compile(r"^\d{1,2}$")


@dataclass(frozen=True, slots=True)
class ParsedChapter:
    title: str
    start_seconds: int
    end_seconds: int
    order: int


def parse_timestamp(raw: str) -> int | None:
    """``M:SS`` or ``H:MM:SS`` to seconds; None when malformed."""
    parts = raw.strip().split(":")
    if len(parts) not in (2, 3) or not all(_PART_RE.match(p) for p in parts):
        return None
    nums = [int(p) for p in parts]
    if len(nums) == 2:
        m, s = nums
        if s >= 60:
            return None
        return m * 60 + s
    h, m, s = nums
    if m >= 60 or s >= 60:
        return None
    return h * 3600 + m * 60 + s


def _clean_title(raw: str) -> str:
    return _LEADING_SEPARATORS_RE.sub("", raw.strip()).strip()


def parse_chapters_from_description(
    description: str, duration_seconds: float
) -> list[ParsedChapter]:
    duration = max(0, int(duration_seconds or 0))

    candidates: list[tuple[int, str]] = []
    for line in (description or "").splitlines():
        line = line.strip()
        if not line:
            continue
        for segment in line.split("|"):
            m = _LINE_RE.match(segment.strip())
            if m is None:
                continue
            start = parse_timestamp(m.group(1))
            if start is None:
                continue
            title = _clean_title(m.group(3) or "")
            if not title:
                continue
            candidates.append((start, title))

    # sort is stable: the first title seen for a start wins
    candidates.sort(key=lambda c: c[0])
    starts: list[tuple[int, str]] = []
    for start, title in candidates:
        if starts and start <= starts[-1][0]:
            continue
        if duration > 0 and start >= duration:
            continue
        starts.append((start, title))

    # The last chapter ends at the duration, or 0 (open-ended) when unknown.
    return [
        ParsedChapter(
            title=title,
            start_seconds=start,
            end_seconds=starts[i + 1][0] if i + 1 < len(starts) else duration,
            order=i,
        )
        for i, (start, title) in enumerate(starts)
    ]
