from __future__ import annotations

import pytest

from coursetrack.services.chapter_parser import (
    ParsedChapter,
    parse_chapters_from_description,
    parse_timestamp,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0:00", 0),
        ("1:05", 65),
        ("12:34", 754),
        ("1:02:03", 3723),
        ("1:60", None),
        ("1:02:60", None),
        ("abc", None),
    ],
)
def test_parse_timestamp(raw: str, expected: int | None) -> None:
    assert parse_timestamp(raw) == expected


def test_basic_description() -> None:
    description = "Chapters:\n0:00 Intro\n1:30 - Setup\n5:00 • Wrap up\n"
    assert parse_chapters_from_description(description, 600) == [
        ParsedChapter(title="Intro", start_seconds=0, end_seconds=90, order=0),
        ParsedChapter(title="Setup", start_seconds=90, end_seconds=300, order=1),
        ParsedChapter(title="Wrap up", start_seconds=300, end_seconds=600, order=2),
    ]


def test_out_of_order_lines_are_sorted_and_contiguous() -> None:
    chapters = parse_chapters_from_description("2:00 Second\n0:00 First\n", 300)
    assert [(c.title, c.start_seconds, c.end_seconds) for c in chapters] == [
        ("First", 0, 120),
        ("Second", 120, 300),
    ]


def test_duplicate_start_keeps_first_title() -> None:
    chapters = parse_chapters_from_description("0:00 A\n0:00 B\n1:00 C\n", 120)
    assert [c.title for c in chapters] == ["A", "C"]


def test_start_past_duration_dropped() -> None:
    chapters = parse_chapters_from_description("0:00 A\n9:00 Too late\n", 120)
    assert [(c.title, c.end_seconds) for c in chapters] == [("A", 120)]


def test_unknown_duration_leaves_last_chapter_open() -> None:
    chapters = parse_chapters_from_description("0:00 A\n1:00 B\n", 0)
    assert [(c.start_seconds, c.end_seconds) for c in chapters] == [(0, 60), (60, 0)]


def test_lines_without_titles_or_timestamps_ignored() -> None:
    description = "Links: https://example.com\n0:30\n0:45 Real one\n"
    chapters = parse_chapters_from_description(description, 100)
    assert [(c.title, c.start_seconds, c.order) for c in chapters] == [("Real one", 45, 0)]


def test_starts_strictly_increasing() -> None:
    description = "\n".join(f"{m}:00 Part {m}" for m in (3, 1, 1, 2, 0))
    starts = [c.start_seconds for c in parse_chapters_from_description(description, 400)]
    assert starts == sorted(set(starts))
