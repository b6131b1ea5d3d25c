"""Content rules for notes ("moments").

New moments are short, possibly multi-line captions.  Newlines are
charged extra against the length budget so a moment can't be padded
into a tall block of blank lines.
"""

from __future__ import annotations

import re

MOMENT_MAX_EFFECTIVE_CHARS = 80
MOMENT_NEWLINE_EXTRA_CHARS = 19
NOTE_EDIT_MAX_CHARS = 120

_INLINE_WS_RE = re.compile(r"[\t ]+")
_ANY_WS_RE = re.compile(r"\s+")


def normalize_moment_content(text: str) -> str:
    lines = [
        _INLINE_WS_RE.sub(" ", line).strip()
        for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    ]
    while lines and lines[0] == "":
        lines.pop(0)
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)


def effective_moment_length(text: str) -> int:
    return len(text) + text.count("\n") * MOMENT_NEWLINE_EXTRA_CHARS


def normalize_edited_content(text: str) -> str:
    """Edits flatten to a single line."""
    return _ANY_WS_RE.sub(" ", text).strip()
