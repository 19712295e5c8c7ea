"""Balanced ``{...}`` scanning over free-form text."""
from __future__ import annotations

from typing import Iterator


def iter_json_objects(text: str, start: int = 0) -> Iterator[tuple[str, int]]:
    """Yield ``(object_text, end_offset)`` for each complete top-level object.

    Offsets are absolute positions in ``text``; ``end_offset`` points just past
    the closing brace. Braces inside quoted strings are ignored, and inside a
    string a backslash escapes exactly the next character. Scanning stops at
    the first object that never closes, so its text stays available for a
    later call with more input.
    """
    i = start
    n = len(text)
    while i < n:
        begin = text.find("{", i)
        if begin == -1:
            return

        end = _match_object(text, begin)
        if end == -1:
            return

        yield text[begin:end], end
        i = end


def _match_object(text: str, begin: int) -> int:
    depth = 0
    in_string = False
    escape = False
    for j in range(begin, len(text)):
        char = text[j]
        if escape:
            escape = False
            continue
        if char == "\\" and in_string:
            escape = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return j + 1
    return -1


def has_incomplete_object(text: str) -> bool:
    """True if the last ``{`` in ``text`` has not been closed yet."""
    return text.rfind("{") > text.rfind("}")
